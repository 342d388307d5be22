from __future__ import annotations

import os

import pytest

from node_agent_core.agent import BatchPolicy
from node_agent_core.config import ConfigError, load_config


def _clear_env(keys: list[str]) -> None:
    for k in keys:
        os.environ.pop(k, None)


REQ = ["NODE_HOST_URL", "NODE_DEVICE_ID", "NODE_TOKEN"]
OPT = ["NODE_SYNC_TICK_MS", "NODE_HTTP_TIMEOUT_S", "NODE_BATCH_POLICY"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for k in REQ + OPT:
        monkeypatch.delenv(k, raising=False)


def test_missing_required_env_raises():
    with pytest.raises(ConfigError) as exc:
        load_config(dotenv_enabled=False)

    # Ensure it names a missing key
    assert "Missing required environment variable" in str(exc.value)


def test_valid_env_loads(mock_env):
    cfg = load_config(dotenv_enabled=False)

    assert cfg.host_url == "https://host.test"
    assert cfg.device_id == "dev1"
    assert cfg.token == "secret-token"
    assert cfg.sync_tick_ms == 1000
    assert cfg.http_timeout_s == 0
    assert cfg.batch_policy is BatchPolicy.FAIL_FAST
    assert isinstance(cfg.agent_version, str)
    assert cfg.agent_version  # non-empty


def test_host_url_must_be_http(mock_env, monkeypatch):
    monkeypatch.setenv("NODE_HOST_URL", "host.test")

    with pytest.raises(ConfigError) as exc:
        load_config(dotenv_enabled=False)

    assert "NODE_HOST_URL" in str(exc.value)


def test_invalid_tick_not_int_raises(mock_env, monkeypatch):
    monkeypatch.setenv("NODE_SYNC_TICK_MS", "soon")

    with pytest.raises(ConfigError) as exc:
        load_config(dotenv_enabled=False)

    assert "Invalid integer for NODE_SYNC_TICK_MS" in str(exc.value)


@pytest.mark.parametrize("tick", ["0", "-10"])
def test_tick_must_be_positive(mock_env, monkeypatch, tick: str):
    monkeypatch.setenv("NODE_SYNC_TICK_MS", tick)

    with pytest.raises(ConfigError, match="NODE_SYNC_TICK_MS must be > 0"):
        load_config(dotenv_enabled=False)


def test_negative_timeout_raises(mock_env, monkeypatch):
    monkeypatch.setenv("NODE_HTTP_TIMEOUT_S", "-1")

    with pytest.raises(ConfigError, match="NODE_HTTP_TIMEOUT_S must be >= 0"):
        load_config(dotenv_enabled=False)


def test_batch_policy_collect(mock_env, monkeypatch):
    monkeypatch.setenv("NODE_BATCH_POLICY", "Collect")

    assert load_config(dotenv_enabled=False).batch_policy is BatchPolicy.COLLECT


def test_unknown_batch_policy_raises(mock_env, monkeypatch):
    monkeypatch.setenv("NODE_BATCH_POLICY", "retry")

    with pytest.raises(ConfigError, match="NODE_BATCH_POLICY"):
        load_config(dotenv_enabled=False)


def test_env_file_fills_missing_values(mock_env, monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NODE_TOKEN")
    env_dir = tmp_path / "node-agent"
    env_dir.mkdir()
    (env_dir / ".env").write_text("NODE_TOKEN=from-file\nNODE_DEVICE_ID=ignored\n")

    try:
        cfg = load_config()
    finally:
        os.environ.pop("NODE_TOKEN", None)

    assert cfg.token == "from-file"
    # process env wins over env files
    assert cfg.device_id == "dev1"
