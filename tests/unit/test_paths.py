"""
Tests for paths module.
"""

from pathlib import Path

from node_agent_core.paths import build_paths, get_paths, reset_paths, set_paths


def test_build_paths_default(monkeypatch):
    monkeypatch.delenv("NODE_AGENT_BASE_DIR", raising=False)
    paths = build_paths()

    assert paths.base_dir == Path("/var/lib/node-agent")
    assert paths.data_dir == Path("/var/lib/node-agent/data")
    assert paths.manifest_path == Path("/var/lib/node-agent/data/device.json")


def test_build_paths_custom_base():
    custom_base = Path("/tmp/test-node")
    paths = build_paths(custom_base)

    assert paths.base_dir == custom_base
    assert paths.manifest_path == custom_base / "data" / "device.json"


def test_build_paths_env_var_override(monkeypatch):
    monkeypatch.setenv("NODE_AGENT_BASE_DIR", "/tmp/env-override")

    assert build_paths().base_dir == Path("/tmp/env-override")


def test_global_paths_set_and_reset(monkeypatch):
    monkeypatch.setenv("NODE_AGENT_BASE_DIR", "/tmp/from-env")
    custom = build_paths(Path("/tmp/custom"))

    set_paths(custom)
    try:
        assert get_paths() is custom
    finally:
        reset_paths()

    assert get_paths().base_dir == Path("/tmp/from-env")
    reset_paths()
