"""
Bench capabilities that need no hardware.

Entrypoints:
  node_agent_core.components.builtin:StaticSensor
  node_agent_core.components.builtin:EchoController
"""
from __future__ import annotations

from node_agent_core.components.base import Controller, Sensor
from node_agent_core.models import ControllerInput, ControllerResult


class StaticSensor(Sensor):
    """Reports options["value"] on every read."""

    def sense(self):
        return self.context.options.get("value", 0)


class EchoController(Controller):
    """Accepts any requested value and reports it back as applied."""

    def __init__(self, context):
        super().__init__(context)
        self.last = None

    def control(self, action: ControllerInput) -> ControllerResult:
        self.last = action.measure
        self.context.logger().info("set to %r", action.measure)
        return ControllerResult(name=self.name, unit=self.unit, measure=action.measure)
