from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class PaginatedResponse(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    items: list[dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    db: bool
    latest_month: str | None = None
