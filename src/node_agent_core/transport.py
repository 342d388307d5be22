"""
HTTP transport for the node agent.

The agent only depends on the Transport protocol so tests can inject a double.
AiohttpTransport is the production implementation. It never retries: a failed
request surfaces as TransportError to whoever awaited it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

import aiohttp
from aiohttp import ClientTimeout

from node_agent_core.errors import TransportError

logger = logging.getLogger(__name__)


def bearer_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class Transport(Protocol):
    """
    Minimal interface the agent needs from an HTTP client.
    Keep it small to prevent tight coupling.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: Any = None,
        expect_json: bool = True,
    ) -> Any: ...


class AiohttpTransport:
    """
    Transport over an aiohttp ClientSession.

    A session passed in is borrowed and left open by aclose(); otherwise one is
    created on first use and owned by the transport.
    """

    __slots__ = ("_session", "_owns_session", "_timeout")

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        *,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        # total=None disables aiohttp's default 5 minute limit
        self._timeout = ClientTimeout(total=timeout_s if timeout_s else None)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: Any = None,
        expect_json: bool = True,
    ) -> Any:
        """
        Issue one HTTP request.

        Returns the decoded JSON body, or None when expect_json is False.

        Raises:
            TransportError: connection failure, timeout, non-2xx status or a
                body that is not valid JSON
        """
        session = self._get_session()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("HTTP %s %s", method, url)

        try:
            async with session.request(
                method, url, headers=headers, json=json, timeout=self._timeout
            ) as response:
                logger.debug("HTTP %s %s -> %s", method, url, response.status)
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    raise TransportError(
                        f"HTTP {response.status} from {method} {url}: {body[:300]}",
                        status=response.status,
                    )
                if not expect_json:
                    return None
                try:
                    # UnicodeDecodeError is a ValueError as well
                    return await response.json(content_type=None)
                except ValueError as exc:
                    body = await response.text(errors="replace")
                    raise TransportError(
                        f"Invalid JSON from {method} {url}: {body[:300]}",
                        status=response.status,
                    ) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timeout on {method} {url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"{type(exc).__name__} on {method} {url}: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
