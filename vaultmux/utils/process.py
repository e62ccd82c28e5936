"""
Shared helpers for backends driven by command-line tools (bw, op, pass...).

Child processes are always reaped: if the awaiting task is cancelled (for
example by ``asyncio.wait_for``), the child is killed before the
cancellation propagates.
"""
import os
import time
import shutil
import asyncio
import logging
from typing import Optional
from collections.abc import Mapping, Sequence

from ..exceptions import BackendError, BackendNotInstalledError, CommandFailedError
from .. import conf

logger = logging.getLogger("vaultmux.process")


async def run_command(
    program: str,
    args: Sequence[str] = (),
    env: Optional[Mapping[str, str]] = None,
    stdin: Optional[str] = None,
) -> str:
    """Run ``program`` with ``args`` and return its stdout.

    Args:
        program: Executable name, resolved through PATH.
        args: Arguments, passed without a shell.
        env: Extra environment variables (e.g. session tokens); merged
            over the current environment.
        stdin: Text written to the child's standard input.

    Raises:
        BackendNotInstalledError: If the program cannot be found.
        CommandFailedError: If the program exits with a non-zero status.
        BackendError: If the output is not valid UTF-8.
    """
    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)
    try:
        proc = await asyncio.create_subprocess_exec(
            program,
            *args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=child_env,
        )
    except FileNotFoundError as err:
        raise BackendNotInstalledError(f"{program} command not found") from err
    except OSError as err:
        raise BackendError(f"cannot execute {program}: {err}") from err
    logger.debug("Running %s (%d args)", program, len(args))
    try:
        stdout, stderr = await proc.communicate(
            stdin.encode("utf-8") if stdin is not None else None
        )
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise
    if proc.returncode != 0:
        raise CommandFailedError(
            program,
            proc.returncode,
            stderr.decode("utf-8", errors="replace")
        )
    try:
        return stdout.decode("utf-8")
    except UnicodeDecodeError as err:
        raise BackendError(
            f"Invalid UTF-8 in {program} output: {err}"
        ) from err


async def check_command_exists(program: str) -> bool:
    """Return True when ``program`` is an executable on PATH."""
    return await asyncio.to_thread(shutil.which, program) is not None


class StatusCache:
    """Remember an authentication status for a short time.

    Checking lock status usually means spawning the vendor CLI; the result is
    reused for ``ttl`` seconds (default 5). Not safe for concurrent mutation
    from several threads; backends share it within one event loop.
    """

    def __init__(self, ttl: float = conf.STATUS_CACHE_TTL):
        self.ttl = ttl
        self._authenticated: bool = False
        self._timestamp: Optional[float] = None

    def get(self) -> Optional[bool]:
        """Cached status, or None when unset or older than ``ttl``."""
        if self._timestamp is None:
            return None
        if time.monotonic() - self._timestamp >= self.ttl:
            return None
        return self._authenticated

    def set(self, authenticated: bool) -> None:
        self._authenticated = authenticated
        self._timestamp = time.monotonic()

    def invalidate(self) -> None:
        self._timestamp = None
