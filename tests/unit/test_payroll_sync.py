from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.db import session_scope
from pipelines import payroll_sync
from pipelines.common.compensation_store import count_month
from pipelines.common.normalizers import ParseDiagnostics
from pipelines.common.observability import list_sync_attempts
from pipelines.dadosjusbr_payroll import MemberAggregate, NoDataRowsError, OrgaoPayload, UpstreamHTTPError
from pipelines.payroll_sync import (
    InvalidPeriodError,
    MonthSyncResult,
    OrgaoSyncOutcome,
    Period,
    default_sync_period,
    parse_reference_period,
    range_periods,
    sync_month,
    sync_months,
    year_periods,
)

ORGAO_IDS = ("tjsp", "tjrj", "mpsp")


def _payload(orgao_id: str, members: list[MemberAggregate]) -> OrgaoPayload:
    return OrgaoPayload(
        orgao_id=orgao_id,
        url=f"https://example.test/{orgao_id}",
        raw_bytes=b"nome,valor\n",
        rows_decoded=len(members),
        members=members,
        diagnostics=ParseDiagnostics(),
    )


def _member(nome: str, orgao: str, estado: str, base: float = 50000.0) -> MemberAggregate:
    return MemberAggregate(nome=nome, cargo="Juiz(a)", orgao=orgao, estado=estado, remuneracao_base=base)


def _fake_fetch(calls: list[tuple[str, int, int]] | None = None, *, failing: set[str] = frozenset(), empty: set[str] = frozenset()):
    async def fetch(orgao_id: str, year: int, month: int) -> OrgaoPayload:
        if calls is not None:
            calls.append((orgao_id, year, month))
        if orgao_id in failing:
            raise UpstreamHTTPError(orgao_id, status_code=500)
        if orgao_id in empty:
            raise NoDataRowsError(orgao_id)
        estado = orgao_id[2:].upper()
        orgao = f"{orgao_id[:2].upper()}-{estado}"
        return _payload(orgao_id, [_member(f"Membro A {orgao}", orgao, estado), _member(f"Membro B {orgao}", orgao, estado, 30000.0)])

    return fetch


def test_default_sync_period_lags_three_months() -> None:
    assert default_sync_period(date(2025, 6, 15)) == Period(2025, 3)
    assert default_sync_period(date(2025, 2, 1)) == Period(2024, 11)
    assert default_sync_period(date(2025, 1, 31), lag_months=1) == Period(2024, 12)


def test_year_and_range_periods() -> None:
    assert year_periods(2024) == [Period(2024, month) for month in range(1, 13)]

    periods = range_periods(2024, date(2025, 3, 10))
    assert periods[0] == Period(2024, 1)
    assert periods[-1] == Period(2025, 3)
    assert len(periods) == 15


def test_parse_reference_period() -> None:
    assert parse_reference_period("2025-06") == [Period(2025, 6)]
    assert parse_reference_period(" 2025-6 ") == [Period(2025, 6)]
    assert len(parse_reference_period("2024")) == 12


@pytest.mark.parametrize("value", ["2017", "2031-01", "2025-13", "2025-00", "junho", "2025/06", ""])
def test_parse_reference_period_rejects_invalid_values(value: str) -> None:
    with pytest.raises(InvalidPeriodError):
        parse_reference_period(value)


def test_month_result_counts_outcomes() -> None:
    result = MonthSyncResult.from_outcomes(
        2025,
        6,
        [
            OrgaoSyncOutcome("tjsp", "TJ-SP", "success", members_written=3),
            OrgaoSyncOutcome("tjrj", "TJ-RJ", "error", error="HTTP 500 for tjrj"),
            OrgaoSyncOutcome("mpsp", "MP-SP", "empty"),
        ],
    )

    assert result.total_members == 3
    assert (result.successful_orgaos, result.failed_orgaos, result.empty_orgaos) == (1, 1, 1)
    assert result.to_dict()["mes_referencia"] == "2025-06"


def test_sync_month_writes_members_and_audit_rows(sqlite_settings) -> None:
    calls: list[tuple[str, int, int]] = []

    result = asyncio.run(
        sync_month(2025, 6, settings=sqlite_settings, fetch=_fake_fetch(calls), orgao_ids=ORGAO_IDS)
    )

    assert result.status == "synced"
    assert result.total_members == 6
    assert result.successful_orgaos == 3
    assert sorted(calls) == [("mpsp", 2025, 6), ("tjrj", 2025, 6), ("tjsp", 2025, 6)]
    with session_scope(sqlite_settings) as session:
        assert count_month(session, "2025-06") == 6
        attempts = list_sync_attempts(session, "2025-06")
        above = session.execute(
            text("SELECT COUNT(*) FROM membros WHERE acima_teto > 0 AND mes_referencia = '2025-06'")
        ).scalar_one()
    assert sorted(entry.orgao for entry in attempts) == ["MP-SP", "TJ-RJ", "TJ-SP"]
    assert {entry.status for entry in attempts} == {"success"}
    assert above == 3


def test_sync_month_isolates_failing_and_empty_organs(sqlite_settings) -> None:
    result = asyncio.run(
        sync_month(
            2025,
            6,
            settings=sqlite_settings,
            fetch=_fake_fetch(failing={"tjrj"}, empty={"mpsp"}),
            orgao_ids=ORGAO_IDS,
        )
    )

    assert result.total_members == 2
    assert (result.successful_orgaos, result.failed_orgaos, result.empty_orgaos) == (1, 1, 1)
    with session_scope(sqlite_settings) as session:
        attempts = {entry.orgao: entry for entry in list_sync_attempts(session, "2025-06")}
    assert attempts["TJ-SP"].status == "success"
    assert attempts["TJ-SP"].total_membros == 2
    assert attempts["TJ-RJ"].status == "error"
    assert "HTTP 500" in (attempts["TJ-RJ"].error_message or "")
    assert attempts["MP-SP"].status == "empty"
    assert attempts["MP-SP"].error_message is None


def test_sync_month_unexpected_errors_are_recorded_per_organ(sqlite_settings) -> None:
    async def fetch(orgao_id: str, year: int, month: int) -> OrgaoPayload:
        if orgao_id == "tjsp":
            raise RuntimeError("boom")
        return _payload(orgao_id, [_member("Ana", "TJ-RJ", "RJ")])

    result = asyncio.run(
        sync_month(2025, 6, settings=sqlite_settings, fetch=fetch, orgao_ids=("tjsp", "tjrj"))
    )

    assert result.failed_orgaos == 1
    failed = next(outcome for outcome in result.outcomes if outcome.status == "error")
    assert failed.error == "RuntimeError: boom"


def test_sync_month_skips_existing_month_without_force(sqlite_settings) -> None:
    asyncio.run(sync_month(2025, 6, settings=sqlite_settings, fetch=_fake_fetch(), orgao_ids=ORGAO_IDS))
    calls: list[tuple[str, int, int]] = []

    result = asyncio.run(
        sync_month(2025, 6, settings=sqlite_settings, fetch=_fake_fetch(calls), orgao_ids=ORGAO_IDS)
    )

    assert result.status == "already_synced"
    assert result.existing_members == 6
    assert result.total_members == 0
    assert calls == []


def test_sync_month_force_replaces_existing_rows(sqlite_settings) -> None:
    asyncio.run(sync_month(2025, 6, settings=sqlite_settings, fetch=_fake_fetch(), orgao_ids=ORGAO_IDS))

    result = asyncio.run(
        sync_month(
            2025,
            6,
            force=True,
            settings=sqlite_settings,
            fetch=_fake_fetch(failing={"tjrj", "mpsp"}),
            orgao_ids=ORGAO_IDS,
        )
    )

    assert result.status == "synced"
    assert result.deleted_rows == 6
    with session_scope(sqlite_settings) as session:
        assert count_month(session, "2025-06") == 2
        history = session.execute(text("SELECT COUNT(*) FROM historico_mensal WHERE mes = '2025-06'")).scalar_one()
    assert history == 2


def test_sync_month_dry_run_writes_nothing(sqlite_settings) -> None:
    result = asyncio.run(
        sync_month(2025, 6, dry_run=True, settings=sqlite_settings, fetch=_fake_fetch(), orgao_ids=ORGAO_IDS)
    )

    assert result.total_members == 0
    assert sum(outcome.members_found for outcome in result.outcomes) == 6
    with session_scope(sqlite_settings) as session:
        assert count_month(session, "2025-06") == 0
        assert list_sync_attempts(session) == []


def test_sync_month_rejects_invalid_period(sqlite_settings) -> None:
    with pytest.raises(InvalidPeriodError):
        asyncio.run(sync_month(2025, 13, settings=sqlite_settings, fetch=_fake_fetch(), orgao_ids=ORGAO_IDS))


def test_sync_months_runs_oldest_first_and_rebuilds_search_index(sqlite_settings) -> None:
    calls: list[tuple[str, int, int]] = []

    result = asyncio.run(
        sync_months(
            [Period(2025, 6), Period(2025, 5), Period(2025, 6)],
            settings=sqlite_settings,
            fetch=_fake_fetch(calls),
            orgao_ids=("tjsp",),
        )
    )

    assert [month.mes_referencia for month in result.months] == ["2025-05", "2025-06"]
    assert [call[2] for call in calls] == [5, 6]
    assert result.total_members == 4
    with session_scope(sqlite_settings) as session:
        hits = session.execute(
            text("SELECT COUNT(*) FROM membros_fts WHERE membros_fts MATCH 'membro*'")
        ).scalar_one()
    assert hits == 4


def test_run_reports_success_with_organ_errors_as_warnings(sqlite_settings, monkeypatch) -> None:
    real_sync_months = payroll_sync.sync_months

    async def fake_sync_months(periods, **kwargs):
        kwargs.pop("timeout_seconds", None)
        kwargs.pop("max_retries", None)
        return await real_sync_months(
            periods,
            fetch=_fake_fetch(failing={"tjrj"}),
            orgao_ids=ORGAO_IDS,
            **kwargs,
        )

    monkeypatch.setattr(payroll_sync, "sync_months", fake_sync_months)

    result = payroll_sync.run(reference_period="2025-06", settings=sqlite_settings)

    assert result["job"] == "dadosjusbr_payroll_sync"
    assert result["status"] == "success"
    assert result["rows_written"] == 4
    assert result["rows_extracted"] == 4
    assert len(result["warnings"]) == 1
    assert "TJ-RJ" in result["warnings"][0]
    assert result["errors"] == []


def test_run_dry_run_reports_extracted_rows_only(sqlite_settings, monkeypatch) -> None:
    real_sync_months = payroll_sync.sync_months

    async def fake_sync_months(periods, **kwargs):
        kwargs.pop("timeout_seconds", None)
        kwargs.pop("max_retries", None)
        return await real_sync_months(periods, fetch=_fake_fetch(), orgao_ids=ORGAO_IDS, **kwargs)

    monkeypatch.setattr(payroll_sync, "sync_months", fake_sync_months)

    result = payroll_sync.run(reference_period="2025-06", dry_run=True, settings=sqlite_settings)

    assert result["status"] == "success"
    assert result["rows_extracted"] == 6
    assert result["rows_written"] == 0


def test_run_invalid_reference_period_fails_without_syncing(sqlite_settings, monkeypatch) -> None:
    async def unexpected(*_args, **_kwargs):
        raise AssertionError("sync_months should not be called")

    monkeypatch.setattr(payroll_sync, "sync_months", unexpected)

    result = payroll_sync.run(reference_period="2017-01", settings=sqlite_settings)

    assert result["status"] == "failed"
    assert "Invalid year 2017" in result["errors"][0]


def test_sync_month_rolls_back_organ_when_insert_fails_midway(sqlite_settings, monkeypatch) -> None:
    real_insert_members = payroll_sync.insert_members

    def failing_insert(session, records):
        records = list(records)
        real_insert_members(session, records[:1])
        raise OperationalError("INSERT INTO membros", {}, Exception("disk full"))

    monkeypatch.setattr(payroll_sync, "insert_members", failing_insert)

    result = asyncio.run(
        sync_month(2025, 6, settings=sqlite_settings, fetch=_fake_fetch(), orgao_ids=("tjsp",))
    )

    assert result.failed_orgaos == 1
    assert result.total_members == 0
    with session_scope(sqlite_settings) as session:
        assert count_month(session, "2025-06") == 0
        history = session.execute(text("SELECT COUNT(*) FROM historico_mensal")).scalar_one()
        attempts = list_sync_attempts(session, "2025-06")
    assert history == 0
    assert [entry.status for entry in attempts] == ["error"]
    assert "Database error" in (attempts[0].error_message or "")


def test_run_range_syncs_all_months_and_rebuilds_search_index_once(sqlite_settings, monkeypatch) -> None:
    real_sync_months = payroll_sync.sync_months
    rebuilds: list[int] = []
    real_rebuild = payroll_sync.rebuild_search_index

    async def fake_sync_months(periods, **kwargs):
        kwargs.pop("timeout_seconds", None)
        kwargs.pop("max_retries", None)
        return await real_sync_months(periods, fetch=_fake_fetch(), orgao_ids=("tjsp",), **kwargs)

    def counting_rebuild(session) -> None:
        rebuilds.append(1)
        real_rebuild(session)

    monkeypatch.setattr(payroll_sync, "sync_months", fake_sync_months)
    monkeypatch.setattr(payroll_sync, "rebuild_search_index", counting_rebuild)

    result = payroll_sync.run_range(start_year=2024, today=date(2025, 3, 10), settings=sqlite_settings)

    assert result["status"] == "success"
    assert len(result["months"]) == 15
    assert result["months"][0]["mes_referencia"] == "2024-01"
    assert result["months"][-1]["mes_referencia"] == "2025-03"
    assert result["rows_written"] == 30
    assert len(rebuilds) == 1


def test_run_range_rejects_start_year_before_coverage(sqlite_settings) -> None:
    result = payroll_sync.run_range(start_year=2010, today=date(2025, 3, 10), settings=sqlite_settings)

    assert result["status"] == "failed"
    assert "Invalid year 2010" in result["errors"][0]
