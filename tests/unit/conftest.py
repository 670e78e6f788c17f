from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import db as db_module
from app.api.deps import get_cache, get_db
from app.api.main import app
from app.db import session_scope
from app.read_cache import ReadCache
from app.settings import Settings
from pipelines.common.compensation_store import ensure_schema


@pytest.fixture
def sqlite_settings(tmp_path: Path) -> Iterator[Settings]:
    db_module._get_engine_cached.cache_clear()
    db_module._get_session_factory_cached.cache_clear()
    settings = Settings(
        data_root=tmp_path / "data",
        database_url=f"sqlite:///{(tmp_path / 'extrateto.db').as_posix()}",
        sync_batch_delay_seconds=0.0,
    )
    with session_scope(settings) as session:
        ensure_schema(session)
    yield settings
    db_module._get_engine_cached.cache_clear()
    db_module._get_session_factory_cached.cache_clear()


@pytest.fixture
def api_client(sqlite_settings: Settings) -> Iterator[TestClient]:
    cache = ReadCache(ttl_seconds=60, max_entries=32)

    def _db() -> Iterator[Session]:
        session = db_module.get_session_factory(sqlite_settings)()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
