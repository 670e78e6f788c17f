from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.settings import Settings, get_settings


def _resolve_database_url(settings: Settings | None = None) -> str:
    resolved_settings = settings or get_settings()
    return str(resolved_settings.database_url)


def _enable_sqlite_pragmas(engine, *, wal: bool) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        if wal:
            cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()


@lru_cache(maxsize=4)
def _get_engine_cached(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(
            database_url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=5,
            pool_timeout=30,
            pool_recycle=600,
            future=True,
        )

    in_memory = url.database in (None, "", ":memory:")
    if not in_memory:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(database_url, future=True)
    _enable_sqlite_pragmas(engine, wal=not in_memory)
    return engine


def get_engine(settings: Settings | None = None):
    return _get_engine_cached(_resolve_database_url(settings))


@lru_cache(maxsize=4)
def _get_session_factory_cached(database_url: str):
    engine = _get_engine_cached(database_url)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


def get_session_factory(settings: Settings | None = None):
    return _get_session_factory_cached(_resolve_database_url(settings))


@contextmanager
def session_scope(settings: Settings | None = None) -> Iterator[Session]:
    factory = get_session_factory(settings)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def healthcheck(settings: Settings | None = None) -> bool:
    engine = get_engine(settings)
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True
