from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH.exists():
    src_str = str(SRC_PATH)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from app.db import session_scope  # noqa: E402
from app.logging import configure_logging  # noqa: E402
from app.settings import get_settings  # noqa: E402
from pipelines.common.compensation_store import ensure_schema, fresh_reset  # noqa: E402
from pipelines.common.organ_tables import ORGAOS  # noqa: E402
from pipelines.mock_payroll import seed_placeholder_data  # noqa: E402
from pipelines.payroll_sync import (  # noqa: E402
    InvalidPeriodError,
    Period,
    SyncRunResult,
    default_sync_period,
    range_periods,
    sync_months,
    validate_month,
    validate_year,
    year_periods,
)


def _parse_int(raw: str | None, label: str) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidPeriodError(f"Invalid {label}: {raw!r}. Expected a number.") from exc


def resolve_periods(
    *,
    year: int | None,
    month: int | None,
    sync_all: bool,
    today: date,
    lag_months: int,
    range_start_year: int,
) -> list[Period]:
    """Map CLI flags to the months to sync. Raises InvalidPeriodError before any I/O."""
    default = default_sync_period(today, lag_months)
    if year is not None:
        validate_year(year)
    if month is not None:
        validate_month(month)
        return [Period(year=year if year is not None else default.year, month=month)]
    if sync_all:
        return range_periods(year if year is not None else range_start_year, today)
    if year is not None:
        return year_periods(year)
    return [default]


def _print_summary(result: SyncRunResult) -> None:
    print("--- Sync Complete ---")
    for month in result.months:
        if month.status == "already_synced":
            print(
                f"{month.mes_referencia}: already have {month.existing_members} records. "
                "Use --force to re-sync."
            )
            continue
        print(
            f"{month.mes_referencia}: {month.total_members} members, "
            f"{month.successful_orgaos}/{len(ORGAOS)} organs ok, "
            f"{month.failed_orgaos} failed, {month.empty_orgaos} empty"
        )
    print(f"Total members: {result.total_members}")
    print(f"Successful organs: {result.successful_orgaos}")
    print(f"Failed organs: {result.failed_orgaos}")


def main(argv: list[str] | None = None, *, today: date | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sync DadosJusBr payroll disclosures into the local ExtraTeto store."
    )
    parser.add_argument("--year", default=None, help="Sync every month of this year (2018-2030).")
    parser.add_argument("--month", default=None, help="With --year, sync a single month (1-12).")
    parser.add_argument(
        "--all",
        dest="sync_all",
        action="store_true",
        help="Sync from January of --year (or the configured start year) up to the current month.",
    )
    parser.add_argument("--force", action="store_true", help="Delete and re-sync months that already have data.")
    parser.add_argument("--fresh", action="store_true", help="Delete all stored data and exit.")
    parser.add_argument("--seed", action="store_true", help="Load deterministic placeholder data and exit.")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print the full result as JSON.")
    args = parser.parse_args(argv)

    settings = get_settings()
    today = today or date.today()
    try:
        periods = resolve_periods(
            year=_parse_int(args.year, "year"),
            month=_parse_int(args.month, "month"),
            sync_all=bool(args.sync_all),
            today=today,
            lag_months=settings.sync_default_lag_months,
            range_start_year=settings.sync_range_start_year,
        )
    except InvalidPeriodError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    configure_logging(settings.log_level)

    if args.fresh:
        with session_scope(settings) as session:
            ensure_schema(session)
            fresh_reset(session)
        print("Database cleared.")
        return 0

    if args.seed:
        report: dict[str, Any] = seed_placeholder_data(settings=settings)
        print(f"Done: {report['rows_written']} members seeded")
        return 0

    result = asyncio.run(sync_months(periods, force=bool(args.force), settings=settings))
    if args.as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    _print_summary(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
