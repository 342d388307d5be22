"""
Node agent — handshake, sense, control and the timed sync cycle.

The agent is a two-phase construct. NodeAgent holds the local capabilities
and the transport but knows nothing about the host; it cannot sync.
NodeAgent.connect() performs the handshake and returns a ConfiguredAgent,
which holds the host-declared polling interval and is the only thing that
exposes sync().

Errors are not caught here. Whatever fails (transport, a capability, host
validation) propagates to the caller of the operation that failed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Awaitable, Callable, Optional, Sequence

from node_agent_core.endpoints import EndpointSchema
from node_agent_core.errors import ConfigMismatchError, ControllerLookupError
from node_agent_core.models import (
    ControllerInput,
    ControllerResult,
    Descriptor,
    HostConfig,
    SensorResult,
    parse_actions,
)
from node_agent_core.transport import Transport, bearer_headers

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class BatchPolicy(str, Enum):
    """How a sensor/controller batch reacts to one failing member."""

    FAIL_FAST = "fail_fast"
    COLLECT = "collect"


@dataclass(frozen=True, slots=True)
class BatchFailure:
    """Placeholder for a capability that failed under BatchPolicy.COLLECT."""

    name: str
    unit: str
    error: Exception

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "unit": self.unit,
            "measure": None,
            "error": str(self.error) or type(self.error).__name__,
        }


async def _invoke(fn: Callable[..., Any], *args: Any) -> Any:
    # Capabilities may be plain or async callables.
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _descriptors(capabilities: Sequence[Any]) -> list[Descriptor]:
    return [Descriptor(name=c.name, unit=c.unit) for c in capabilities]


def validate_config(host: HostConfig, sensors: Sequence[Any], controllers: Sequence[Any]) -> None:
    """
    Check every local (name, unit) pair is declared by the host.

    Exact match on both fields, any order, at least one match each. Extra or
    duplicate host entries are fine. Sensors are checked before controllers.

    Raises:
        ConfigMismatchError: on the first side with an undeclared capability
    """
    for kind, local, declared in (
        ("sensor", _descriptors(sensors), set(host.sensors)),
        ("controller", _descriptors(controllers), set(host.controls)),
    ):
        missing = [d for d in local if d not in declared]
        if missing:
            logger.error(
                "Host %s config does not match node: %s",
                kind,
                ", ".join(str(d) for d in missing),
            )
            raise ConfigMismatchError(kind, missing)


class NodeAgent:
    """
    Unconfigured agent: local capabilities plus a way to reach the host.

    Construction does no I/O. Call connect() to run the handshake.
    """

    def __init__(
        self,
        endpoints: EndpointSchema,
        token: str,
        transport: Transport,
        sensors: Sequence[Any],
        controllers: Sequence[Any],
        *,
        clock: Optional[Clock] = None,
        batch_policy: BatchPolicy = BatchPolicy.FAIL_FAST,
    ) -> None:
        self.endpoints = endpoints
        self.token = token
        self.transport = transport
        self.sensors = list(sensors)
        self.controllers = list(controllers)
        self.batch_policy = batch_policy
        self.clock: Clock = clock or monotonic_ms

        _ensure_unique("sensor", self.sensors)
        _ensure_unique("controller", self.controllers)
        self.controllers_by_name = {c.name: c for c in self.controllers}

        self.last_poll = self.clock()

    @property
    def device_id(self) -> str:
        return self.endpoints.device_id

    @property
    def headers(self) -> dict[str, str]:
        return bearer_headers(self.token)

    async def connect(self, *, initial_sense: bool = True) -> "ConfiguredAgent":
        """
        Handshake with the host and validate local configuration.

        On success returns the configured agent and, if initial_sense is set,
        schedules one sensing pass in the background. Its actions are not
        applied. Mismatch raises ConfigMismatchError and is never retried.
        """
        url = self.endpoints.handshake()
        logger.info("Handshake: device=%s host=%s", self.device_id, url)

        payload = await self.transport.request("GET", url, headers=self.headers)
        host = HostConfig.from_json(payload)
        validate_config(host, self.sensors, self.controllers)

        configured = ConfiguredAgent(self, host)
        logger.info(
            "Handshake ok: polling_interval=%dms sensors=%d controllers=%d",
            host.polling_interval,
            len(self.sensors),
            len(self.controllers),
        )

        if initial_sense:
            configured.spawn(configured.sense(), "initial sense pass")
        return configured


def _ensure_unique(kind: str, capabilities: Sequence[Any]) -> None:
    seen: set[str] = set()
    for c in capabilities:
        if c.name in seen:
            raise ValueError(f"duplicate {kind} name: {c.name!r}")
        seen.add(c.name)


class ConfiguredAgent:
    """
    Agent after a successful handshake.

    polling_interval (milliseconds) comes from the host. last_poll starts at
    the unconfigured agent's construction time and advances when a sync cycle
    starts.

    sync() has no re-entrancy guard; an overlapping call only starts a second
    cycle if the interval has elapsed again since the first one started.
    """

    def __init__(self, agent: NodeAgent, host_config: HostConfig) -> None:
        self.agent = agent
        self.host_config = host_config
        self.polling_interval = host_config.polling_interval
        self.last_poll = agent.last_poll
        self._background: set[asyncio.Task] = set()

    @property
    def device_id(self) -> str:
        return self.agent.device_id

    @property
    def sensors(self) -> list[Any]:
        return self.agent.sensors

    @property
    def controllers(self) -> list[Any]:
        return self.agent.controllers

    # -------------------------
    # Sense / control
    # -------------------------
    async def sense(self) -> list[ControllerInput]:
        """
        Read every sensor concurrently, report the readings, return the host's actions.

        Readings are posted in sensor-list order regardless of completion order.
        """
        sensors = self.sensors
        outcomes = await self._batch(
            [_invoke(s.sense) for s in sensors], _descriptors(sensors), "sensor"
        )
        readings = [
            o if isinstance(o, (SensorResult, BatchFailure)) else SensorResult(s.name, s.unit, o)
            for s, o in zip(sensors, outcomes)
        ]

        payload = await self.agent.transport.request(
            "POST",
            self.agent.endpoints.sense(),
            headers=self.agent.headers,
            json=[r.to_json() for r in readings],
        )
        actions = parse_actions(payload)
        logger.debug("Sensed %d readings, host returned %d actions", len(readings), len(actions))
        return actions

    async def control(self, actions: Sequence[ControllerInput]) -> list[Any]:
        """
        Apply actions to the controllers they name, concurrently.

        Every action is resolved by controller name before any controller runs.
        The outcomes are reported to the host in the background; the response
        is not read. Returns the outcomes in action order.

        Raises:
            ControllerLookupError: an action names an unknown controller
        """
        targets = []
        for action in actions:
            controller = self.agent.controllers_by_name.get(action.name)
            if controller is None:
                raise ControllerLookupError(action.name)
            targets.append(controller)

        outcomes = await self._batch(
            [_invoke(c.control, a) for c, a in zip(targets, actions)],
            _descriptors(targets),
            "controller",
        )
        results = [
            o if isinstance(o, (ControllerResult, BatchFailure)) else ControllerResult(c.name, c.unit, o)
            for c, o in zip(targets, outcomes)
        ]

        self.spawn(
            self.agent.transport.request(
                "POST",
                self.agent.endpoints.control(),
                headers=self.agent.headers,
                json=[r.to_json() for r in results],
                expect_json=False,
            ),
            "control report",
        )
        return results

    async def sync(self) -> bool:
        """
        Run one sense -> control cycle if the polling interval has elapsed.

        Returns True when a cycle ran. last_poll advances at cycle start.
        """
        now = self.agent.clock()
        if now - self.last_poll <= self.polling_interval:
            return False

        self.last_poll = now
        logger.debug("Sync cycle start (interval=%dms)", self.polling_interval)
        actions = await self.sense()
        await self.control(actions)
        return True

    # -------------------------
    # Batches and background work
    # -------------------------
    async def _batch(
        self, calls: list[Awaitable[Any]], descriptors: list[Descriptor], kind: str
    ) -> list[Any]:
        tasks = [asyncio.ensure_future(c) for c in calls]
        if not tasks:
            return []

        if self.agent.batch_policy is BatchPolicy.FAIL_FAST:
            try:
                return list(await asyncio.gather(*tasks))
            except BaseException:
                for t in tasks:
                    t.cancel()
                raise

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        out: list[Any] = []
        for d, o in zip(descriptors, outcomes):
            if isinstance(o, Exception):
                logger.warning("%s %s failed: %s", kind, d, o)
                out.append(BatchFailure(name=d.name, unit=d.unit, error=o))
            elif isinstance(o, BaseException):
                raise o
            else:
                out.append(o)
        return out

    def spawn(self, coro: Awaitable[Any], what: str) -> asyncio.Task:
        """Run coro in the background; a failure is logged, not raised."""
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(partial(self._on_background_done, what))
        return task

    def _on_background_done(self, what: str, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s failed", what, exc_info=exc)

    async def drain(self) -> None:
        """Wait for outstanding background reports to finish."""
        while True:
            pending = [t for t in self._background if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
