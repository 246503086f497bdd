"""Asynchronous JSON fetching over httpx."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from ..config import LoaderConfig

T = TypeVar("T")


class FetchError(RuntimeError):
    """Base class for every failure of a single GET + decode."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class TransportError(FetchError):
    """Connection refused, timeout or any other transport level failure."""


class ProtocolError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str) -> None:
        super().__init__(url, f"HTTP {status_code}: {reason}")
        self.status_code = status_code
        self.reason = reason


class DecodeError(FetchError):
    """The body is not JSON or does not match the expected shape."""


@lru_cache(maxsize=None)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


class JsonFetcher:
    """Issue GET requests and decode the JSON body into typed values."""

    def __init__(
        self,
        config: LoaderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("post_loader.fetcher")
        timeout = httpx.Timeout(config.read_timeout, connect=config.connect_timeout)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={"request": [self._log_request], "response": [self._log_response]},
        )

    async def __aenter__(self) -> "JsonFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_json(self, url: str, model: type[T] | Any) -> T:
        """GET ``url`` and validate the JSON body against ``model``.

        Raises:
            TransportError: the request never produced a response.
            ProtocolError: the response status is not 2xx.
            DecodeError: the body cannot be decoded into ``model``.
        """
        # Body decoding (gzip, deflate) happens inside get(), including in the logging hook
        try:
            response = await self._client.get(url)
        except httpx.DecodingError as exc:
            raise DecodeError(url, f"undecodable response body: {exc}") from exc
        except httpx.RequestError as exc:
            detail = str(exc) or "request failure"
            raise TransportError(url, f"{type(exc).__name__}: {detail}") from exc
        if not response.is_success:
            raise ProtocolError(url, response.status_code, response.reason_phrase)
        try:
            return _adapter(model).validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(url, f"unexpected response body: {exc.error_count()} error(s)") from exc

    # ------------------------------------------------------------------
    async def _log_request(self, request: httpx.Request) -> None:
        self.logger.debug("http_request", method=request.method, url=str(request.url))

    async def _log_response(self, response: httpx.Response) -> None:
        fields: dict[str, Any] = {
            "url": str(response.request.url),
            "status": response.status_code,
        }
        if self.config.log_http_bodies:
            await response.aread()
            fields["body"] = response.text
        self.logger.debug("http_response", **fields)


__all__ = [
    "DecodeError",
    "FetchError",
    "JsonFetcher",
    "ProtocolError",
    "TransportError",
]
