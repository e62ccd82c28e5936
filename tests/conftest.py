"""Shared fixtures for the vaultmux test-suite."""
import pytest
import pytest_asyncio

import vaultmux
from vaultmux import BackendType, Config
from vaultmux.backends.mock import MockBackend


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove VAULTMUX_* variables that leak between tests."""
    for key in (
        'VAULTMUX_BACKEND',
        'VAULTMUX_PREFIX',
        'VAULTMUX_SESSION_CACHE',
        'VAULTMUX_SESSION_TTL',
        'VAULTMUX_SESSION_FILE',
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def registered():
    """Make sure the bundled backends are registered."""
    vaultmux.init()
    vaultmux.register_backend(BackendType.MOCK, MockBackend)
    return vaultmux.registered_backends()


@pytest.fixture
def mock_config():
    return Config.new(BackendType.MOCK)


@pytest.fixture
def cached_config(tmp_path):
    """Mock config with the session cache under tmp_path."""
    return (
        Config.new(BackendType.MOCK)
        .with_session_cache(True)
        .with_session_file(tmp_path / 'cache' / 'mock-session.json')
        .with_session_ttl(3600)
    )


@pytest_asyncio.fixture
async def backend(mock_config):
    """An initialized mock backend without prefix."""
    mock = MockBackend(mock_config)
    await mock.init()
    yield mock
    await mock.close()


@pytest_asyncio.fixture
async def prefixed_backend():
    """An initialized mock backend using the ``app/`` prefix."""
    mock = MockBackend(Config.new(BackendType.MOCK).with_prefix('app/'))
    await mock.init()
    yield mock
    await mock.close()


@pytest_asyncio.fixture
async def session(backend):
    return await backend.authenticate()
