"""
Vaultmux Configuration defaults.

Values are read from the environment at import time:
    VAULTMUX_BACKEND        = default backend identifier (mock)
    VAULTMUX_PREFIX         = default item name prefix (empty)
    VAULTMUX_SESSION_CACHE  = enable the on-disk session cache (false)
    VAULTMUX_SESSION_TTL    = session time-to-live in seconds (1800)
    VAULTMUX_SESSION_FILE   = explicit session cache file (see Config.from_env)
    VAULTMUX_CACHE_DIR      = directory for session cache files
    VAULTMUX_OPT_<KEY>      = backend-specific option ``<key>``
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger("vaultmux.conf")

_TRUE_VALUES = ("1", "true", "yes", "on")


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "Ignoring invalid integer %s=%r, using %s", name, raw, default
        )
        return default


OPTION_ENV_PREFIX = "VAULTMUX_OPT_"

DEFAULT_BACKEND = os.environ.get("VAULTMUX_BACKEND", "mock").lower()
DEFAULT_PREFIX = os.environ.get("VAULTMUX_PREFIX", "")
SESSION_CACHE_ENABLED = env_bool("VAULTMUX_SESSION_CACHE", False)
SESSION_TTL = env_int("VAULTMUX_SESSION_TTL", 1800)  # 30 minutes
CACHE_DIR = Path(
    os.environ.get(
        "VAULTMUX_CACHE_DIR",
        Path.home().joinpath(".cache", "vaultmux")
    )
)

# authentication status checks are reused for this many seconds
STATUS_CACHE_TTL = 5.0


def env_options() -> dict[str, str]:
    """Collect backend options from VAULTMUX_OPT_<KEY> variables."""
    return {
        name[len(OPTION_ENV_PREFIX):].lower(): value
        for name, value in os.environ.items()
        if name.startswith(OPTION_ENV_PREFIX) and len(name) > len(OPTION_ENV_PREFIX)
    }
