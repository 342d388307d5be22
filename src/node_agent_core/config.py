"""
Node Agent configuration.

Single source for runtime configuration. Values come from environment variables,
optionally loaded from standard env files.

Priority (lowest -> highest):
1) /etc/node-agent/agent.env (system install)
2) ~/.config/node-agent/.env (user install)
3) ./.env (project override)
4) process environment variables (always win)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
from typing import Iterable
from urllib.parse import urlsplit

from dotenv import load_dotenv

from node_agent_core.agent import BatchPolicy


class ConfigError(ValueError):
    """Raised when configuration is missing or invalid."""


def _package_version() -> str:
    try:
        return _pkg_version("node-agent-core")
    except PackageNotFoundError:
        return "0.0.0+dev"


def _env_paths() -> Iterable[Path]:
    # 1) system install
    yield Path("/etc/node-agent/agent.env")

    # 2) user config dir
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", str(Path.home())))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    yield base / "node-agent" / ".env"

    # 3) project override
    yield Path(".env")


def _require_env(key: str) -> str:
    v = os.getenv(key)
    if v is None or v == "":
        raise ConfigError(f"Missing required environment variable: {key}")
    return v


def _parse_int(key: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {key}: {raw!r}") from exc


def _parse_float(key: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid number for {key}: {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class AgentConfig:
    host_url: str
    device_id: str
    token: str
    agent_version: str
    sync_tick_ms: int
    http_timeout_s: float  # 0 disables the client-side timeout
    batch_policy: BatchPolicy


def load_config(*, dotenv_enabled: bool = True) -> AgentConfig:
    """
    Load config by reading env files and then validating environment variables.

    Returns an immutable AgentConfig. Raises ConfigError on failure.
    """
    if dotenv_enabled:
        for p in _env_paths():
            if p.is_file():
                # do not override existing env vars; later files can fill missing
                load_dotenv(p, override=False)

    host_url = _require_env("NODE_HOST_URL")
    parts = urlsplit(host_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigError(f"NODE_HOST_URL must be an http(s) URL: {host_url!r}")

    device_id = _require_env("NODE_DEVICE_ID")
    token = _require_env("NODE_TOKEN")

    sync_tick_ms = _parse_int("NODE_SYNC_TICK_MS", os.getenv("NODE_SYNC_TICK_MS", "1000"))
    if sync_tick_ms <= 0:
        raise ConfigError("NODE_SYNC_TICK_MS must be > 0")

    http_timeout_s = _parse_float("NODE_HTTP_TIMEOUT_S", os.getenv("NODE_HTTP_TIMEOUT_S", "0"))
    if http_timeout_s < 0:
        raise ConfigError("NODE_HTTP_TIMEOUT_S must be >= 0 (0 disables)")

    policy_raw = os.getenv("NODE_BATCH_POLICY", BatchPolicy.FAIL_FAST.value).strip().lower()
    try:
        batch_policy = BatchPolicy(policy_raw)
    except ValueError as exc:
        allowed = ", ".join(p.value for p in BatchPolicy)
        raise ConfigError(f"NODE_BATCH_POLICY must be one of: {allowed}; got {policy_raw!r}") from exc

    return AgentConfig(
        host_url=host_url,
        device_id=device_id,
        token=token,
        agent_version=_package_version(),
        sync_tick_ms=sync_tick_ms,
        http_timeout_s=http_timeout_s,
        batch_policy=batch_policy,
    )
