# node_agent_core/components/base.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from node_agent_core.components.context import CapabilityContext


class Capability(ABC):
    """
    Common base for sensors and controllers.

    Capabilities are instantiated and owned by the agent for its lifetime.
    They must not talk to the host themselves.
    """

    def __init__(self, context: CapabilityContext):
        self.context = context

    @property
    def name(self) -> str:
        return self.context.name

    @property
    def unit(self) -> str:
        return self.context.unit

    def setup(self) -> None:
        """One-time initialization (open buses, configure pins). Default: nothing."""


class Sensor(Capability):
    """A local capability producing a named, unit-labeled measurement."""

    @abstractmethod
    def sense(self) -> Any:
        """
        Read the sensor.

        May be a coroutine. Returns either a bare measure (number or string) or
        a SensorResult.
        """
        raise NotImplementedError


class Controller(Capability):
    """A local capability accepting a desired value and reporting the outcome."""

    @abstractmethod
    def control(self, action) -> Any:
        """
        Apply a ControllerInput.

        May be a coroutine. Returns either a bare measure or a ControllerResult.
        """
        raise NotImplementedError
