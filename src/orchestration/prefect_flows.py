from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from tempfile import gettempdir
from typing import Any

# Ensure Prefect metadata storage is writable in local/dev environments.
if "PREFECT_HOME" not in os.environ:
    default_prefect_home = Path(gettempdir()) / "prefect-home"
    default_prefect_home.mkdir(parents=True, exist_ok=True)
    os.environ["PREFECT_HOME"] = str(default_prefect_home)

if "PREFECT_API_DATABASE_CONNECTION_URL" not in os.environ:
    default_prefect_db = Path(gettempdir()) / "prefect-home" / "orion.db"
    default_prefect_db.parent.mkdir(parents=True, exist_ok=True)
    os.environ["PREFECT_API_DATABASE_CONNECTION_URL"] = (
        f"sqlite+aiosqlite:///{default_prefect_db.as_posix()}"
    )

if "PREFECT_MEMO_STORE_PATH" not in os.environ:
    default_memo_store = Path(os.environ["PREFECT_HOME"]) / "memo_store.toml"
    default_memo_store.parent.mkdir(parents=True, exist_ok=True)
    os.environ["PREFECT_MEMO_STORE_PATH"] = str(default_memo_store)

from prefect import flow

from app.logging import configure_logging
from app.settings import get_settings
from pipelines.payroll_sync import run as run_payroll_sync
from pipelines.payroll_sync import run_range as run_payroll_range

settings = get_settings()
configure_logging(settings.log_level)


@flow(name="dadosjusbr_payroll_sync")
def payroll_sync_flow(
    reference_period: str,
    force: bool = False,
    dry_run: bool = False,
    max_retries: int | None = None,
    timeout_seconds: int | None = None,
) -> dict[str, Any]:
    """Sync one month (`YYYY-MM`) or a whole year (`YYYY`)."""
    return run_payroll_sync(
        reference_period=reference_period,
        force=force,
        dry_run=dry_run,
        max_retries=max_retries,
        timeout_seconds=timeout_seconds,
    )


@flow(name="dadosjusbr_payroll_range")
def payroll_range_flow(
    start_year: int | None = None,
    force: bool = False,
    dry_run: bool = False,
    max_retries: int | None = None,
    timeout_seconds: int | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Sync every month from `start_year` up to today as a single run."""
    return run_payroll_range(
        start_year=start_year,
        today=today,
        force=force,
        dry_run=dry_run,
        max_retries=max_retries,
        timeout_seconds=timeout_seconds,
    )
