"""
Transports: the outbound "issue request, get response or failure" capability.

- HttpTransport: JSON over HTTP with httpx
- FileTransport: JSON fixtures read from a local directory

Both raise TransportError / ServerRejectedError on failure and are safe
to cancel (asyncio task cancellation).
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import httpx

from ..resilience.outcome import ServerRejectedError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceRequest:
    """Request for a resource relative to a transport's base locator."""
    locator: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    payload: Any


class Transport(Protocol):
    async def issue(self, request: ResourceRequest) -> RawResponse:
        ...


class HttpTransport:
    """
    httpx-backed transport.

    Per-attempt deadlines are enforced by the caller, so the client's own
    timeout is only a backstop.

    Example:
        async with HttpTransport("http://localhost:8000/api") as api:
            response = await api.issue(ResourceRequest("cameras/classroom"))
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip('/') + '/'
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
        )

    def url_for(self, request: ResourceRequest) -> str:
        return self.base_url + request.locator.lstrip("/")

    async def issue(self, request: ResourceRequest) -> RawResponse:
        try:
            response = await self.client.get(self.url_for(request), params=request.params or None)
        except httpx.TimeoutException as e:
            raise TransportError(f"HTTP timeout for {request.locator}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP request for {request.locator} failed: {e}") from e

        if not response.is_success:
            raise ServerRejectedError(
                response.status_code,
                f"API request failed: {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {request.locator}: {e}") from e

        return RawResponse(status_code=response.status_code, payload=payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class FileTransport:
    """
    Transport over a directory of JSON fixtures.

    A missing fixture is reported as a 404 rejection.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _resolve(self, locator: str) -> Path:
        path = (self.root / locator.lstrip('/')).resolve()
        if self.root.resolve() not in path.parents:
            raise ServerRejectedError(403, f"{locator} is outside the fixtures directory")
        return path

    def _read(self, path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    async def issue(self, request: ResourceRequest) -> RawResponse:
        path = self._resolve(request.locator)
        if not path.is_file():
            raise ServerRejectedError(404, f"Fallback data not available: {request.locator}")

        try:
            payload = await asyncio.to_thread(self._read, path)
        except json.JSONDecodeError as e:
            raise TransportError(f"Invalid JSON in {path.name}: {e}") from e
        except OSError as e:
            raise TransportError(f"Could not read {path.name}: {e}") from e

        logger.debug(f"Loaded fixture {path}")
        return RawResponse(status_code=200, payload=payload)
