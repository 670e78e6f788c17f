from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import text
from sqlalchemy.orm import Session

SyncStatus = Literal["success", "empty", "error"]
SYNC_STATUSES: frozenset[str] = frozenset({"success", "empty", "error"})

# Long upstream messages (HTML error pages) are cut before landing in the log.
_MAX_ERROR_MESSAGE_CHARS = 1000


@dataclass(frozen=True)
class SyncLogEntry:
    orgao: str
    mes_referencia: str
    total_membros: int
    status: str
    error_message: str | None
    synced_at: str


def utc_now() -> datetime:
    return datetime.now(UTC)


def record_sync_attempt(
    *,
    session: Session,
    orgao: str,
    mes_referencia: str,
    total_membros: int,
    status: SyncStatus,
    error_message: str | None = None,
) -> None:
    if status not in SYNC_STATUSES:
        raise ValueError(f"Unknown sync status '{status}'. Expected one of {sorted(SYNC_STATUSES)}.")
    if error_message is not None:
        error_message = error_message[:_MAX_ERROR_MESSAGE_CHARS]

    session.execute(
        text(
            """
            INSERT INTO sync_log (
                orgao,
                mes_referencia,
                total_membros,
                status,
                error_message,
                synced_at
            ) VALUES (
                :orgao,
                :mes_referencia,
                :total_membros,
                :status,
                :error_message,
                :synced_at
            )
            """
        ),
        {
            "orgao": orgao,
            "mes_referencia": mes_referencia,
            "total_membros": total_membros,
            "status": status,
            "error_message": error_message,
            "synced_at": utc_now().replace(microsecond=0).isoformat(),
        },
    )


def list_sync_attempts(session: Session, mes_referencia: str | None = None) -> list[SyncLogEntry]:
    rows = session.execute(
        text(
            """
            SELECT orgao, mes_referencia, total_membros, status, error_message, synced_at
            FROM sync_log
            WHERE (:mes IS NULL OR mes_referencia = :mes)
            ORDER BY id
            """
        ),
        {"mes": mes_referencia},
    ).mappings().all()
    return [
        SyncLogEntry(
            orgao=str(row["orgao"]),
            mes_referencia=str(row["mes_referencia"]),
            total_membros=int(row["total_membros"]),
            status=str(row["status"]),
            error_message=row["error_message"],
            synced_at=str(row["synced_at"]),
        )
        for row in rows
    ]
