from __future__ import annotations

from app.db import session_scope
from pipelines.common.compensation_store import count_month
from pipelines.common.organ_tables import FEDERAL_MP_CODES
from pipelines.mock_payroll import generate_placeholder_members, seed_placeholder_data

TETO = 46366.19


def test_generate_placeholder_members_is_deterministic() -> None:
    first = generate_placeholder_members(ceiling=TETO, count=50, seed=7)
    second = generate_placeholder_members(ceiling=TETO, count=50, seed=7)

    assert first == second
    assert len({record.nome for record in first}) == 50


def test_generate_placeholder_members_shape() -> None:
    records = generate_placeholder_members(ceiling=TETO, count=100)

    totals = [record.remuneracao_total for record in records]
    assert totals == sorted(totals, reverse=True)
    assert all(record.mes_referencia == "2025-06" for record in records)
    assert any(record.acima_teto > 0 for record in records)
    federal = [record for record in records if record.orgao in set(FEDERAL_MP_CODES.values())]
    assert all(record.estado == "DF" for record in federal)


def test_seed_placeholder_data_replaces_the_month(sqlite_settings) -> None:
    seed_placeholder_data(settings=sqlite_settings, count=30)
    report = seed_placeholder_data(settings=sqlite_settings, count=20)

    assert report["job"] == "mock_payroll_seed"
    assert report["rows_written"] == 20
    with session_scope(sqlite_settings) as session:
        assert count_month(session, "2025-06") == 20
