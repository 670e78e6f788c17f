from __future__ import annotations

import asyncio
import re
import time
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import date
from functools import partial
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Iterator, Literal, Sequence
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from app.db import session_scope
from app.logging import bound_log_context, get_logger
from app.settings import Settings, get_settings
from pipelines.common.bronze_store import persist_raw_payload
from pipelines.common.ceiling import ceiling_for_year
from pipelines.common.compensation_store import (
    count_month,
    delete_month,
    ensure_schema,
    format_mes_referencia,
    insert_members,
    rebuild_search_index,
)
from pipelines.common.http_client import AsyncHttpClient
from pipelines.common.normalizers import map_orgao_id
from pipelines.common.observability import SyncStatus, record_sync_attempt
from pipelines.common.organ_tables import ORGAOS
from pipelines.dadosjusbr_payroll import (
    DATASET_NAME,
    SOURCE,
    NoDataRowsError,
    OrgaoFetchError,
    OrgaoPayload,
    fetch_orgao_members,
)

JOB_NAME = "dadosjusbr_payroll_sync"
MIN_YEAR = 2018
MAX_YEAR = 2030

_REFERENCE_PERIOD_RE = re.compile(r"^(\d{4})(?:-(\d{1,2}))?$")

OrgaoFetcher = Callable[[str, int, int], Awaitable[OrgaoPayload]]
MonthStatus = Literal["synced", "already_synced"]

logger = get_logger(JOB_NAME)


class InvalidPeriodError(ValueError):
    pass


@dataclass(frozen=True, order=True)
class Period:
    year: int
    month: int

    @property
    def mes_referencia(self) -> str:
        return format_mes_referencia(self.year, self.month)


@dataclass(frozen=True)
class OrgaoSyncOutcome:
    orgao_id: str
    orgao: str
    status: SyncStatus
    members_written: int = 0
    error: str | None = None
    members_found: int = 0


@dataclass
class MonthSyncResult:
    year: int
    month: int
    status: MonthStatus
    total_members: int = 0
    successful_orgaos: int = 0
    failed_orgaos: int = 0
    empty_orgaos: int = 0
    deleted_rows: int = 0
    existing_members: int = 0
    outcomes: list[OrgaoSyncOutcome] = field(default_factory=list)

    @property
    def mes_referencia(self) -> str:
        return format_mes_referencia(self.year, self.month)

    @classmethod
    def from_outcomes(
        cls,
        year: int,
        month: int,
        outcomes: Sequence[OrgaoSyncOutcome],
        *,
        deleted_rows: int = 0,
    ) -> "MonthSyncResult":
        return cls(
            year=year,
            month=month,
            status="synced",
            total_members=sum(outcome.members_written for outcome in outcomes),
            successful_orgaos=sum(1 for outcome in outcomes if outcome.status == "success"),
            failed_orgaos=sum(1 for outcome in outcomes if outcome.status == "error"),
            empty_orgaos=sum(1 for outcome in outcomes if outcome.status == "empty"),
            deleted_rows=deleted_rows,
            outcomes=list(outcomes),
        )

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["mes_referencia"] = self.mes_referencia
        return payload


@dataclass
class SyncRunResult:
    months: list[MonthSyncResult] = field(default_factory=list)

    @property
    def total_members(self) -> int:
        return sum(month.total_members for month in self.months)

    @property
    def successful_orgaos(self) -> int:
        return sum(month.successful_orgaos for month in self.months)

    @property
    def failed_orgaos(self) -> int:
        return sum(month.failed_orgaos for month in self.months)

    @property
    def empty_orgaos(self) -> int:
        return sum(month.empty_orgaos for month in self.months)

    @property
    def members_found(self) -> int:
        return sum(outcome.members_found for month in self.months for outcome in month.outcomes)

    def errors(self) -> list[str]:
        return [
            f"{month.mes_referencia} {outcome.orgao}: {outcome.error}"
            for month in self.months
            for outcome in month.outcomes
            if outcome.status == "error"
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_members": self.total_members,
            "successful_orgaos": self.successful_orgaos,
            "failed_orgaos": self.failed_orgaos,
            "empty_orgaos": self.empty_orgaos,
            "months": [month.to_dict() for month in self.months],
        }


def validate_year(year: int) -> int:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriodError(f"Invalid year {year}. Expected {MIN_YEAR}-{MAX_YEAR}.")
    return year


def validate_month(month: int) -> int:
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month {month}. Expected 1-12.")
    return month


def default_sync_period(today: date, lag_months: int = 3) -> Period:
    """Month `lag_months` before `today`; upstream publishes with a delay."""
    index = today.year * 12 + (today.month - 1) - lag_months
    return Period(year=index // 12, month=index % 12 + 1)


def year_periods(year: int) -> list[Period]:
    validate_year(year)
    return [Period(year=year, month=month) for month in range(1, 13)]


def range_periods(start_year: int, today: date) -> list[Period]:
    validate_year(start_year)
    periods: list[Period] = []
    for year in range(start_year, today.year + 1):
        last_month = today.month if year == today.year else 12
        periods.extend(Period(year=year, month=month) for month in range(1, last_month + 1))
    return periods


def parse_reference_period(reference_period: str) -> list[Period]:
    match = _REFERENCE_PERIOD_RE.match(reference_period.strip())
    if match is None:
        raise InvalidPeriodError(
            f"Invalid reference period '{reference_period}'. Expected YYYY or YYYY-MM."
        )
    year = validate_year(int(match.group(1)))
    if match.group(2) is None:
        return year_periods(year)
    return [Period(year=year, month=validate_month(int(match.group(2))))]


def _batches(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    size = max(1, size)
    for start in range(0, len(items), size):
        yield items[start : start + size]


@asynccontextmanager
async def _fetcher_scope(
    settings: Settings,
    fetch: OrgaoFetcher | None,
    *,
    timeout_seconds: int | None = None,
    max_retries: int | None = None,
) -> AsyncIterator[OrgaoFetcher]:
    if fetch is not None:
        yield fetch
        return
    async with AsyncHttpClient.from_settings(
        settings,
        timeout_seconds=timeout_seconds,
        max_retries=max_retries,
    ) as client:
        yield partial(fetch_orgao_members, client, settings=settings)


def _archive_payload(settings: Settings, payload: OrgaoPayload, period: Period, run_id: str | None) -> None:
    try:
        persist_raw_payload(
            settings=settings,
            source=SOURCE,
            dataset=DATASET_NAME,
            orgao_id=payload.orgao_id,
            reference_period=period.mes_referencia,
            raw_bytes=payload.raw_bytes,
            uri=payload.url,
            rows_decoded=payload.rows_decoded,
            members_aggregated=len(payload.members),
            parse_failures=payload.diagnostics.failures,
            negative_valores=payload.diagnostics.negatives,
            run_id=run_id,
        )
    except OSError:
        logger.exception("Could not archive raw payload.", orgao_id=payload.orgao_id)


async def sync_orgao(
    orgao_id: str,
    year: int,
    month: int,
    *,
    fetch: OrgaoFetcher,
    ceiling: float,
    settings: Settings | None = None,
    dry_run: bool = False,
    run_id: str | None = None,
) -> OrgaoSyncOutcome:
    """Fetch, store and audit one organ-month.

    Fetch and insert failures are contained in the returned outcome. A failure
    while writing the audit row propagates.
    """
    settings = settings or get_settings()
    orgao = map_orgao_id(orgao_id)
    period = Period(year=year, month=month)

    try:
        payload = await fetch(orgao_id, year, month)
    except NoDataRowsError as exc:
        outcome = OrgaoSyncOutcome(orgao_id=orgao_id, orgao=orgao, status="empty", error=str(exc))
    except OrgaoFetchError as exc:
        logger.warning("Organ fetch failed.", orgao_id=orgao_id, error=str(exc))
        outcome = OrgaoSyncOutcome(orgao_id=orgao_id, orgao=orgao, status="error", error=str(exc))
    except Exception as exc:
        logger.exception("Unexpected error while fetching organ.", orgao_id=orgao_id)
        outcome = OrgaoSyncOutcome(
            orgao_id=orgao_id,
            orgao=orgao,
            status="error",
            error=f"{type(exc).__name__}: {exc}",
        )
    else:
        outcome = _store_payload(payload, period, orgao, ceiling, settings, dry_run=dry_run)
        if outcome.status == "success" and settings.archive_raw_payloads and not dry_run:
            _archive_payload(settings, payload, period, run_id)

    if not dry_run:
        with session_scope(settings) as session:
            record_sync_attempt(
                session=session,
                orgao=orgao,
                mes_referencia=period.mes_referencia,
                total_membros=outcome.members_written,
                status=outcome.status,
                error_message=outcome.error if outcome.status == "error" else None,
            )

    logger.info(
        "Organ sync finished.",
        orgao_id=orgao_id,
        status=outcome.status,
        members_written=outcome.members_written,
    )
    return outcome


def _store_payload(
    payload: OrgaoPayload,
    period: Period,
    orgao: str,
    ceiling: float,
    settings: Settings,
    *,
    dry_run: bool,
) -> OrgaoSyncOutcome:
    if not payload.members:
        return OrgaoSyncOutcome(orgao_id=payload.orgao_id, orgao=orgao, status="empty")

    records = [member.to_record(year=period.year, month=period.month, ceiling=ceiling) for member in payload.members]
    if dry_run:
        return OrgaoSyncOutcome(
            orgao_id=payload.orgao_id,
            orgao=orgao,
            status="success",
            members_found=len(records),
        )

    try:
        with session_scope(settings) as session:
            written = insert_members(session, records)
    except SQLAlchemyError as exc:
        logger.exception("Could not store organ members; transaction rolled back.", orgao_id=payload.orgao_id)
        return OrgaoSyncOutcome(
            orgao_id=payload.orgao_id,
            orgao=orgao,
            status="error",
            error=f"Database error: {exc}",
            members_found=len(records),
        )
    return OrgaoSyncOutcome(
        orgao_id=payload.orgao_id,
        orgao=orgao,
        status="success",
        members_written=written,
        members_found=len(records),
    )


async def sync_month(
    year: int,
    month: int,
    *,
    force: bool = False,
    dry_run: bool = False,
    settings: Settings | None = None,
    fetch: OrgaoFetcher | None = None,
    orgao_ids: Sequence[str] = ORGAOS,
    run_id: str | None = None,
    timeout_seconds: int | None = None,
    max_retries: int | None = None,
) -> MonthSyncResult:
    validate_year(year)
    validate_month(month)
    settings = settings or get_settings()
    period = Period(year=year, month=month)
    ceiling = ceiling_for_year(year, settings.teto_by_year)

    deleted_rows = 0
    if not dry_run:
        with session_scope(settings) as session:
            ensure_schema(session)
            existing = count_month(session, period.mes_referencia)
        if existing and not force:
            logger.info(
                "Month already synced; skipping.",
                mes_referencia=period.mes_referencia,
                existing_members=existing,
            )
            return MonthSyncResult(year=year, month=month, status="already_synced", existing_members=existing)
        if existing:
            with session_scope(settings) as session:
                deleted_rows = delete_month(session, period.mes_referencia)
            logger.info("Deleted month before forced re-sync.", mes_referencia=period.mes_referencia, deleted_rows=deleted_rows)

    outcomes: list[OrgaoSyncOutcome] = []
    with bound_log_context(mes_referencia=period.mes_referencia):
        async with _fetcher_scope(
            settings,
            fetch,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        ) as fetcher:
            for index, batch in enumerate(_batches(orgao_ids, settings.sync_concurrency)):
                if index:
                    await asyncio.sleep(settings.sync_batch_delay_seconds)
                outcomes.extend(
                    await asyncio.gather(
                        *(
                            sync_orgao(
                                orgao_id,
                                year,
                                month,
                                fetch=fetcher,
                                ceiling=ceiling,
                                settings=settings,
                                dry_run=dry_run,
                                run_id=run_id,
                            )
                            for orgao_id in batch
                        )
                    )
                )

    result = MonthSyncResult.from_outcomes(year, month, outcomes, deleted_rows=deleted_rows)
    logger.info(
        "Month sync finished.",
        mes_referencia=period.mes_referencia,
        total_members=result.total_members,
        successful_orgaos=result.successful_orgaos,
        failed_orgaos=result.failed_orgaos,
        empty_orgaos=result.empty_orgaos,
    )
    return result


async def sync_months(
    periods: Iterable[Period],
    *,
    force: bool = False,
    dry_run: bool = False,
    settings: Settings | None = None,
    fetch: OrgaoFetcher | None = None,
    orgao_ids: Sequence[str] = ORGAOS,
    run_id: str | None = None,
    timeout_seconds: int | None = None,
    max_retries: int | None = None,
) -> SyncRunResult:
    """Sync months one after another, oldest first, then rebuild the search index once."""
    settings = settings or get_settings()
    result = SyncRunResult()
    async with _fetcher_scope(
        settings,
        fetch,
        timeout_seconds=timeout_seconds,
        max_retries=max_retries,
    ) as fetcher:
        for period in sorted(set(periods)):
            result.months.append(
                await sync_month(
                    period.year,
                    period.month,
                    force=force,
                    dry_run=dry_run,
                    settings=settings,
                    fetch=fetcher,
                    orgao_ids=orgao_ids,
                    run_id=run_id,
                )
            )

    if not dry_run and result.months:
        with session_scope(settings) as session:
            rebuild_search_index(session)
    return result


def _run_periods(
    resolve_periods: Callable[[], list[Period]],
    *,
    label: str,
    force: bool,
    dry_run: bool,
    max_retries: int | None,
    timeout_seconds: int | None,
    settings: Settings,
) -> dict[str, Any]:
    run_id = str(uuid4())
    started_at = time.perf_counter()

    try:
        periods = resolve_periods()
        with bound_log_context(run_id=run_id):
            result = asyncio.run(
                sync_months(
                    periods,
                    force=force,
                    dry_run=dry_run,
                    settings=settings,
                    run_id=run_id,
                    timeout_seconds=timeout_seconds,
                    max_retries=max_retries,
                )
            )
    except Exception as exc:
        elapsed = time.perf_counter() - started_at
        logger.exception(
            "Payroll sync failed.",
            run_id=run_id,
            reference_period=label,
            duration_seconds=round(elapsed, 2),
        )
        return {
            "job": JOB_NAME,
            "status": "failed",
            "run_id": run_id,
            "duration_seconds": round(elapsed, 2),
            "rows_extracted": 0,
            "rows_written": 0,
            "warnings": [],
            "errors": [str(exc)],
            "months": [],
        }

    elapsed = time.perf_counter() - started_at
    warnings = result.errors()
    skipped = [month.mes_referencia for month in result.months if month.status == "already_synced"]
    if skipped:
        warnings.append(f"Months already synced and skipped: {', '.join(skipped)}.")
    rows_written = 0 if dry_run else result.total_members
    logger.info(
        "Payroll sync finished.",
        run_id=run_id,
        reference_period=label,
        rows_written=rows_written,
        failed_orgaos=result.failed_orgaos,
        duration_seconds=round(elapsed, 2),
    )
    return {
        "job": JOB_NAME,
        "status": "success",
        "run_id": run_id,
        "duration_seconds": round(elapsed, 2),
        "rows_extracted": result.members_found,
        "rows_written": rows_written,
        "warnings": warnings,
        "errors": [],
        "months": [month.to_dict() for month in result.months],
    }


def run(
    *,
    reference_period: str,
    force: bool = False,
    dry_run: bool = False,
    max_retries: int | None = None,
    timeout_seconds: int | None = None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    return _run_periods(
        partial(parse_reference_period, reference_period),
        label=reference_period,
        force=force,
        dry_run=dry_run,
        max_retries=max_retries,
        timeout_seconds=timeout_seconds,
        settings=settings or get_settings(),
    )


def run_range(
    *,
    start_year: int | None = None,
    today: date | None = None,
    force: bool = False,
    dry_run: bool = False,
    max_retries: int | None = None,
    timeout_seconds: int | None = None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Sync every month from January of `start_year` up to today's month in one run."""
    settings = settings or get_settings()
    first_year = start_year or settings.sync_range_start_year
    today = today or date.today()
    return _run_periods(
        partial(range_periods, first_year, today),
        label=f"{first_year}-01..{today.year}-{today.month:02d}",
        force=force,
        dry_run=dry_run,
        max_retries=max_retries,
        timeout_seconds=timeout_seconds,
        settings=settings,
    )
