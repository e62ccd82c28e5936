"""
Tests for the CLI and concurrency helpers.

Tests cover:
- run_command output, stdin, environment and failures
- Cancellation kills the child process
- StatusCache expiry
- ReadWriteLock exclusion
"""
import asyncio
import shutil
import sys

import pytest

from vaultmux.exceptions import BackendNotInstalledError, CommandFailedError
from vaultmux.utils import ReadWriteLock, StatusCache, check_command_exists, run_command

PYTHON = sys.executable


class TestRunCommand:
    """Tests for run_command."""

    @pytest.mark.asyncio
    async def test_stdout(self):
        out = await run_command(PYTHON, ['-c', 'print("hello")'])
        assert out.strip() == 'hello'

    @pytest.mark.asyncio
    async def test_stdin(self):
        out = await run_command(
            PYTHON,
            ['-c', 'import sys; sys.stdout.write(sys.stdin.read().upper())'],
            stdin='secret value'
        )
        assert out == 'SECRET VALUE'

    @pytest.mark.asyncio
    async def test_env_merged(self):
        """Test that extra variables reach the child with PATH intact."""
        out = await run_command(
            PYTHON,
            ['-c', 'import os; print(os.environ["BW_SESSION"], bool(os.environ.get("PATH")))'],
            env={'BW_SESSION': 'tok123'}
        )
        assert out.split() == ['tok123', 'True']

    @pytest.mark.asyncio
    async def test_missing_program(self):
        with pytest.raises(BackendNotInstalledError) as exc:
            await run_command('vaultmux-no-such-tool', ['--version'])
        assert 'vaultmux-no-such-tool' in exc.value.tool

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        with pytest.raises(CommandFailedError) as exc:
            await run_command(
                PYTHON,
                ['-c', 'import sys; sys.stderr.write("vault is locked"); sys.exit(3)']
            )
        assert exc.value.returncode == 3
        assert 'vault is locked' in exc.value.stderr

    @pytest.mark.asyncio
    async def test_cancellation_kills_child(self):
        """Test that a timed-out command does not leave the child running."""
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(
                run_command(PYTHON, ['-c', 'import time; time.sleep(30)']),
                timeout=0.5
            )


class TestCheckCommand:
    @pytest.mark.asyncio
    async def test_exists(self):
        name = 'python3' if shutil.which('python3') else PYTHON
        assert await check_command_exists(name) is True

    @pytest.mark.asyncio
    async def test_missing(self):
        assert await check_command_exists('vaultmux-no-such-tool') is False


class TestStatusCache:
    """Short-lived authentication status."""

    def test_unset(self):
        assert StatusCache().get() is None

    def test_set_get(self):
        cache = StatusCache(ttl=60)
        cache.set(True)
        assert cache.get() is True
        cache.set(False)
        assert cache.get() is False

    def test_expired(self):
        cache = StatusCache(ttl=0)
        cache.set(True)
        assert cache.get() is None

    def test_invalidate(self):
        cache = StatusCache(ttl=60)
        cache.set(True)
        cache.invalidate()
        assert cache.get() is None


class TestReadWriteLock:
    """Reader/writer exclusion."""

    @pytest.mark.asyncio
    async def test_concurrent_readers(self):
        lock = ReadWriteLock()
        both_inside = asyncio.Event()
        inside = 0

        async def reader():
            nonlocal inside
            async with lock.read():
                inside += 1
                if inside == 2:
                    both_inside.set()
                await asyncio.wait_for(both_inside.wait(), timeout=1)

        await asyncio.gather(reader(), reader())
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []

        async def writer():
            async with lock.write():
                assert lock.locked is True
                events.append('write-start')
                await asyncio.sleep(0.05)
                events.append('write-end')

        async def reader():
            await asyncio.sleep(0.01)
            async with lock.read():
                events.append('read')

        await asyncio.gather(writer(), reader())
        assert events == ['write-start', 'write-end', 'read']
        assert lock.locked is False

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        events = []
        first_reader_in = asyncio.Event()

        async def long_reader():
            async with lock.read():
                first_reader_in.set()
                await asyncio.sleep(0.05)
                events.append('reader-1')

        async def writer():
            await first_reader_in.wait()
            async with lock.write():
                events.append('writer')

        async def late_reader():
            await first_reader_in.wait()
            await asyncio.sleep(0.01)
            async with lock.read():
                events.append('reader-2')

        await asyncio.gather(long_reader(), writer(), late_reader())
        assert events == ['reader-1', 'writer', 'reader-2']

    @pytest.mark.asyncio
    async def test_cancelled_writer_releases_readers(self):
        """Test that a cancelled waiting writer does not strand readers."""
        lock = ReadWriteLock()
        reader_in = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with lock.read():
                reader_in.set()
                await release.wait()

        async def writer():
            async with lock.write():
                pass

        hold = asyncio.ensure_future(holder())
        await reader_in.wait()
        waiting = asyncio.ensure_future(writer())
        await asyncio.sleep(0.01)
        waiting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiting

        async def second_reader():
            async with lock.read():
                return 'ok'

        assert await asyncio.wait_for(second_reader(), timeout=1) == 'ok'
        release.set()
        await hold
