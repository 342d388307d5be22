"""
HTTP endpoint schema for a single device.

Handshake:  GET  <base>/
Sense:      POST <base>/<device_id>/sense
Control:    POST <base>/<device_id>/control
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

_DEVICE_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class EndpointSchemaError(ValueError):
    """Raised when an invalid base URL or device id is used to construct endpoints."""


def _validate_base_url(base_url: str) -> str:
    if not isinstance(base_url, str) or not base_url:
        raise EndpointSchemaError("base_url must be a non-empty string")
    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise EndpointSchemaError(f"base_url '{base_url}' is invalid; expected http(s)://host[/path]")
    if parts.query or parts.fragment:
        raise EndpointSchemaError(f"base_url '{base_url}' must not carry a query or fragment")
    return base_url


def _validate_device_id(device_id: str) -> str:
    if not isinstance(device_id, str) or not device_id:
        raise EndpointSchemaError("device_id must be a non-empty string")
    if not _DEVICE_ID_RE.fullmatch(device_id):
        raise EndpointSchemaError(
            f"device_id '{device_id}' is invalid; allowed: [A-Za-z0-9_.-]+"
        )
    return device_id


@dataclass(frozen=True, slots=True)
class EndpointSchema:
    """
    Endpoint schema for one device on one host.
    """

    base_url: str
    device_id: str

    def __post_init__(self) -> None:
        _validate_base_url(self.base_url)
        _validate_device_id(self.device_id)

    @property
    def base(self) -> str:
        return self.base_url.rstrip("/")

    def handshake(self) -> str:
        return f"{self.base}/"

    def sense(self) -> str:
        return f"{self.base}/{self.device_id}/sense"

    def control(self) -> str:
        return f"{self.base}/{self.device_id}/control"
