"""
Pytest configuration and shared fixtures
"""
import os
import sys
from types import SimpleNamespace

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from node_agent_core.paths import build_paths, reset_paths, set_paths  # noqa: E402

BASE_URL = "https://host.test"
DEVICE_ID = "dev1"


class FakeTransport:
    """
    Records every request and answers from a (method, url) -> response table.

    A response may be a value, an Exception instance (raised) or a callable
    taking the request body.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.closed = False

    async def request(self, method, url, *, headers, json=None, expect_json=True):
        self.calls.append(
            SimpleNamespace(method=method, url=url, headers=headers, json=json, expect_json=expect_json)
        )
        resp = self.responses.get((method, url))
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            return resp(json)
        return resp

    async def aclose(self):
        self.closed = True


class ManualClock:
    """Millisecond clock the test moves by hand."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def mock_env(monkeypatch):
    """Set up mock environment variables"""
    env_vars = {
        'NODE_HOST_URL': BASE_URL,
        'NODE_DEVICE_ID': DEVICE_ID,
        'NODE_TOKEN': 'secret-token',
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


@pytest.fixture
def tmp_base(tmp_path):
    """Use tmp_path as base_dir so manifest reads happen under tmp_path/data/."""
    paths = build_paths(tmp_path)
    set_paths(paths)
    try:
        yield paths
    finally:
        reset_paths()
