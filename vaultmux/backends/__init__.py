"""Bundled backend implementations."""
from . import mock


def register_all() -> None:
    """Register every bundled backend with the factory."""
    mock.register()
