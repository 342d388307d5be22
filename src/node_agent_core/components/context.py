"""
Capability context — what each sensor/controller receives at construction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class CapabilityContext:
    """
    Rules:
    - kind is "sensor" or "controller".
    - name and unit must match what the host declares, or the handshake fails.
    - options is the free-form manifest block for this capability.
    """

    device_id: str
    kind: str
    name: str
    unit: str
    options: dict[str, Any] = field(default_factory=dict)

    def logger(self) -> logging.Logger:
        return logging.getLogger(f"node.{self.kind}.{self.name}")

    @staticmethod
    def create(
        *, device_id: str, kind: str, name: str, unit: str, options: dict[str, Any] | None = None
    ) -> "CapabilityContext":
        if kind not in ("sensor", "controller"):
            raise ValueError(f"kind must be 'sensor' or 'controller', got {kind!r}")
        if not isinstance(name, str) or not name:
            raise ValueError("name must be a non-empty string")
        if not isinstance(unit, str):
            raise ValueError("unit must be a string")
        return CapabilityContext(
            device_id=device_id, kind=kind, name=name, unit=unit, options=dict(options or {})
        )
