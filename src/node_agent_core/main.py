"""
Node Agent Core entrypoint.

CLI:
  node-agent run              -> handshake with the host, then sync on a timer until SIGINT/SIGTERM
  node-agent check-manifest   -> import every manifest entry without contacting the host
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as pkg_version
from typing import Optional

from node_agent_core.agent import ConfiguredAgent, NodeAgent
from node_agent_core.components.loader import load_capabilities
from node_agent_core.core.log_config import configure_logging
from node_agent_core.endpoints import EndpointSchema, EndpointSchemaError
from node_agent_core.errors import NodeAgentError
from node_agent_core.transport import AiohttpTransport

configure_logging()
logger = logging.getLogger(__name__)


def get_version_string() -> str:
    try:
        return pkg_version("node-agent-core")
    except PackageNotFoundError:
        return "0.0.0+dev"


@dataclass
class Runtime:
    shutdown: asyncio.Event
    transport: Optional[AiohttpTransport] = None
    agent: Optional[ConfiguredAgent] = None


def _install_signal_handlers(rt: Runtime) -> list[int]:
    loop = asyncio.get_running_loop()
    installed = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _request_shutdown, rt, signum)
        except (NotImplementedError, RuntimeError):
            # Windows event loops, or not on the main thread
            continue
        installed.append(signum)
    return installed


def _request_shutdown(rt: Runtime, signum: int) -> None:
    logger.info("Received signal %s; requesting shutdown", signum)
    rt.shutdown.set()


async def _run(cfg, *, shutdown: Optional[asyncio.Event] = None) -> int:
    """
    Load capabilities, handshake, then call sync() every tick until shutdown.
    Returns process exit code. Errors raised by a sync cycle propagate.
    """
    rt = Runtime(shutdown=shutdown or asyncio.Event())

    try:
        endpoints = EndpointSchema(cfg.host_url, cfg.device_id)
    except EndpointSchemaError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    sensors, controllers, results = load_capabilities(cfg.device_id)
    failed = [r for r in results if not r.ok]
    if failed:
        logger.warning(
            "%d manifest entries failed to load: %s",
            len(failed),
            ", ".join(f"{r.kind}:{r.name}" for r in failed),
        )

    signals = _install_signal_handlers(rt)
    rt.transport = AiohttpTransport(timeout_s=cfg.http_timeout_s or None)
    try:
        node = NodeAgent(
            endpoints,
            cfg.token,
            rt.transport,
            sensors,
            controllers,
            batch_policy=cfg.batch_policy,
        )
        try:
            rt.agent = await node.connect()
        except NodeAgentError:
            logger.exception("Handshake failed")
            return 1

        tick_s = cfg.sync_tick_ms / 1000.0
        logger.info("Agent running (tick=%dms; shutdown via SIGINT/SIGTERM)", cfg.sync_tick_ms)
        while not rt.shutdown.is_set():
            await rt.agent.sync()
            try:
                await asyncio.wait_for(rt.shutdown.wait(), timeout=tick_s)
            except asyncio.TimeoutError:
                pass
        return 0
    finally:
        loop = asyncio.get_running_loop()
        for signum in signals:
            loop.remove_signal_handler(signum)
        await _shutdown(rt)


async def _shutdown(rt: Runtime) -> None:
    logger.info("Shutting down...")

    # Let pending reports reach the host before the session goes away
    if rt.agent is not None:
        await rt.agent.drain()

    if rt.transport is not None:
        await rt.transport.aclose()
        logger.info("HTTP session closed")


def run_agent() -> int:
    """
    Runtime mode. Returns process exit code.
    """
    from node_agent_core.config import ConfigError, load_config

    try:
        cfg = load_config()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    logger.info("============================================================")
    logger.info("Node Agent Core")
    logger.info("Version: %s", get_version_string())
    logger.info("Device: %s", cfg.device_id)
    logger.info("Host: %s", cfg.host_url)
    logger.info("============================================================")

    return asyncio.run(_run(cfg))


def check_manifest() -> int:
    """Import every manifest entry (no setup, no network) and print the outcome."""
    device_id = os.environ.get("NODE_DEVICE_ID", "local")
    _, _, results = load_capabilities(device_id, run_setup=False)
    for r in results:
        status = "ok" if r.ok else "FAIL"
        line = f"{status:4} {r.kind:10} {r.name} ({r.entrypoint or '-'})"
        if r.ok and not r.loaded:
            line += " disabled"
        if r.error:
            line += f": {r.error}"
        print(line)
    return 0 if all(r.ok for r in results) else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="node-agent")
    p.add_argument("--version", action="version", version=get_version_string())

    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Run agent runtime")
    sub.add_parser(
        "check-manifest",
        help="Load sensors and controllers from the device manifest without contacting the host",
    )

    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.cmd == "run":
        raise SystemExit(run_agent())

    if args.cmd == "check-manifest":
        raise SystemExit(check_manifest())

    raise SystemExit(2)


if __name__ == "__main__":
    main()
