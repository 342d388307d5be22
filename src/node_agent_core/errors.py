"""
Exception taxonomy for the node agent.

Nothing here is caught inside the agent core; errors travel to whoever
awaited the failing operation.
"""
from __future__ import annotations

from typing import Sequence


class NodeAgentError(Exception):
    """Base class for node agent errors."""


class ConfigMismatchError(NodeAgentError):
    """
    Raised by the handshake when local capabilities are not declared by the host.

    Fatal: the agent must not proceed and the handshake is never retried.
    """

    def __init__(self, kind: str, missing: Sequence[object]) -> None:
        self.kind = kind
        self.missing = list(missing)
        side = "sensor" if kind == "sensor" else "control"
        super().__init__(
            f"Host {side} data does not match node config (unmatched: "
            + ", ".join(str(d) for d in self.missing)
            + ")"
        )


class HostPayloadError(NodeAgentError, ValueError):
    """Raised when a host response does not have the documented shape."""


class TransportError(NodeAgentError):
    """Raised on network failure, non-2xx status or an undecodable body."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ControllerLookupError(NodeAgentError, LookupError):
    """Raised when an action names a controller the agent does not own."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No controller named {name!r}")
        self.name = name
