"""Vaultmux utilities shared by backend implementations."""
from .locks import ReadWriteLock
from .process import run_command, check_command_exists, StatusCache

__all__ = [
    "ReadWriteLock",
    "run_command",
    "check_command_exists",
    "StatusCache",
]
