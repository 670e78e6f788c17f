from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from app.settings import Settings


@dataclass(frozen=True)
class HttpClientConfig:
    timeout_seconds: float
    max_retries: int
    backoff_seconds: float


class HttpRequestError(Exception):
    def __init__(self, url: str, *, status_code: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        label = f"HTTP {status_code}" if status_code is not None else "request error"
        message = f"{label} for URL: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class AsyncHttpClient:
    def __init__(self, config: HttpClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.client = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            trust_env=False,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        timeout_seconds: int | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncHttpClient":
        config = HttpClientConfig(
            timeout_seconds=timeout_seconds or settings.request_timeout_seconds,
            max_retries=max_retries if max_retries is not None else settings.http_max_retries,
            backoff_seconds=backoff_seconds or settings.http_backoff_seconds,
        )
        return cls(config, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        last_error: HttpRequestError | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                # httpx timeouts are per phase; this bounds the whole exchange.
                response = await asyncio.wait_for(
                    self.client.request(method, url, **kwargs),
                    timeout=self.config.timeout_seconds,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as exc:
                last_error = HttpRequestError(url, status_code=exc.response.status_code)
            except httpx.RequestError as exc:
                last_error = HttpRequestError(url, reason=type(exc).__name__)
            except asyncio.TimeoutError:
                last_error = HttpRequestError(
                    url, reason=f"no complete response within {self.config.timeout_seconds}s"
                )
            if attempt >= self.config.max_retries:
                break
            await asyncio.sleep(self.config.backoff_seconds * (2**attempt))
        assert last_error is not None
        raise last_error

    async def get_bytes(self, url: str, **kwargs: Any) -> bytes:
        response = await self._request("GET", url, **kwargs)
        return response.content
