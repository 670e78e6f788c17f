from __future__ import annotations

from collections.abc import Iterable

from app.db import session_scope
from app.settings import Settings
from pipelines.common.compensation_store import (
    CompensationRecord,
    build_compensation_record,
    insert_members,
    rebuild_search_index,
)

TETO = 46366.19


def make_record(
    nome: str,
    orgao: str = "TJ-SP",
    *,
    total: float = 50000.0,
    year: int = 2025,
    month: int = 6,
    estado: str = "SP",
    cargo: str = "Juiz(a)",
    ceiling: float = TETO,
) -> CompensationRecord:
    """Record whose whole total is base salary."""
    return build_compensation_record(
        nome=nome,
        cargo=cargo,
        orgao=orgao,
        estado=estado,
        remuneracao_base=total,
        verbas_indenizatorias=0.0,
        direitos_eventuais=0.0,
        direitos_pessoais=0.0,
        year=year,
        month=month,
        ceiling=ceiling,
    )


def store_records(settings: Settings, records: Iterable[CompensationRecord]) -> None:
    with session_scope(settings) as session:
        insert_members(session, records)
        rebuild_search_index(session)
