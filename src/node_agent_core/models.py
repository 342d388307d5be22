"""
Wire types exchanged with the host.

Every item on the wire is a ``{name, unit, measure}`` object. The host
configuration returned by the handshake only carries ``{name, unit}`` pairs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from node_agent_core.errors import HostPayloadError

Measure = Union[int, float, str]


def _require_str(obj: dict[str, Any], key: str, where: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise HostPayloadError(f"{where}: '{key}' must be a string, got {v!r}")
    return v


def _require_object(obj: Any, where: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise HostPayloadError(f"{where}: expected an object, got {type(obj).__name__}")
    return obj


@dataclass(frozen=True, slots=True)
class Descriptor:
    """Name and unit of a sensor or controller, without behavior."""

    name: str
    unit: str

    @classmethod
    def from_json(cls, obj: Any, *, where: str = "descriptor") -> "Descriptor":
        obj = _require_object(obj, where)
        return cls(name=_require_str(obj, "name", where), unit=_require_str(obj, "unit", where))

    def __str__(self) -> str:
        return f"{self.name} [{self.unit}]"


@dataclass(frozen=True, slots=True)
class SensorResult:
    name: str
    unit: str
    measure: Measure | None

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "unit": self.unit, "measure": self.measure}


@dataclass(frozen=True, slots=True)
class ControllerInput:
    name: str
    unit: str
    measure: Measure

    @classmethod
    def from_json(cls, obj: Any) -> "ControllerInput":
        obj = _require_object(obj, "action")
        name = _require_str(obj, "name", "action")
        unit = _require_str(obj, "unit", "action")

        # Older hosts send "value" instead of "measure".
        key = "measure" if "measure" in obj else "value"
        if key not in obj:
            raise HostPayloadError(f"action {name!r}: missing 'measure'")
        measure = obj[key]
        # bool is an int subclass; only numbers and strings are measures.
        if isinstance(measure, bool) or not isinstance(measure, (int, float, str)):
            raise HostPayloadError(f"action {name!r}: invalid measure {measure!r}")

        return cls(name=name, unit=unit, measure=measure)

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "unit": self.unit, "measure": self.measure}


@dataclass(frozen=True, slots=True)
class ControllerResult:
    name: str
    unit: str
    measure: Measure | None

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "unit": self.unit, "measure": self.measure}


@dataclass(frozen=True, slots=True)
class HostConfig:
    """
    Host-declared source of truth received once by the handshake.

    polling_interval is in milliseconds.
    """

    polling_interval: int
    sensors: tuple[Descriptor, ...]
    controls: tuple[Descriptor, ...]

    @classmethod
    def from_json(cls, payload: Any) -> "HostConfig":
        obj = _require_object(payload, "host config")

        interval = obj.get("polling_interval")
        # bool is an int subclass; a host sending true/false is broken.
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            raise HostPayloadError(f"host config: invalid polling_interval {interval!r}")
        if isinstance(interval, float):
            if not interval.is_integer():
                raise HostPayloadError(f"host config: polling_interval must be an integer, got {interval!r}")
            interval = int(interval)
        if interval < 0:
            raise HostPayloadError(f"host config: polling_interval must be >= 0, got {interval}")

        sections: dict[str, tuple[Descriptor, ...]] = {}
        for key in ("sensors", "controls"):
            raw = obj.get(key)
            if not isinstance(raw, list):
                raise HostPayloadError(f"host config: '{key}' must be a list")
            sections[key] = tuple(
                Descriptor.from_json(item, where=f"host config {key}[{i}]") for i, item in enumerate(raw)
            )

        return cls(polling_interval=interval, sensors=sections["sensors"], controls=sections["controls"])


def parse_actions(payload: Any) -> list[ControllerInput]:
    """Parse the sense endpoint's response into control actions."""
    if not isinstance(payload, list):
        raise HostPayloadError(f"sense response must be a list of actions, got {type(payload).__name__}")
    return [ControllerInput.from_json(item) for item in payload]
