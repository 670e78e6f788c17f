"""HTTP cache headers for the payroll read endpoints.

Payroll data only changes when a sync runs, so GET responses carry
Cache-Control and a weak ETag, and conditional requests get a 304.
"""

from __future__ import annotations

import hashlib
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

# (path prefix, max-age seconds); the first matching prefix wins.
_CACHE_RULES: tuple[tuple[str, int], ...] = (
    ("/v1/search", 30),
    ("/v1/members/", 300),
    ("/v1/members", 60),
    ("/v1/months", 300),
    ("/v1/years", 300),
    ("/v1/anomalies", 600),
    ("/v1/stats/", 300),
)


def match_cache_rule(path: str) -> int | None:
    for prefix, max_age in _CACHE_RULES:
        if path.startswith(prefix):
            return max_age
    return None


def compute_etag(body: bytes) -> str:
    digest = hashlib.md5(body, usedforsecurity=False).hexdigest()[:16]
    return f'W/"{digest}"'


class CacheHeaderMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> StarletteResponse:
        max_age = match_cache_rule(request.url.path) if request.method == "GET" else None
        response: StarletteResponse = await call_next(request)
        if max_age is None or response.status_code != 200:
            return response

        chunks: list[bytes] = []
        async for chunk in response.body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
        body = b"".join(chunks)
        etag = compute_etag(body)
        cache_headers = {"ETag": etag, "Cache-Control": f"public, max-age={max_age}"}

        if request.headers.get("if-none-match") == etag:
            return Response(status_code=304, headers=cache_headers)

        headers = {key: value for key, value in response.headers.items() if key.lower() != "content-length"}
        return Response(
            content=body,
            status_code=response.status_code,
            headers={**headers, **cache_headers},
            media_type=response.media_type,
        )
