from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "extrateto-data-platform"
    app_env: str = "local"
    log_level: str = "INFO"
    api_version_prefix: str = "/v1"

    database_url: str = "sqlite:///data/extrateto.db"

    data_root: Path = Field(default_factory=lambda: Path("data"))
    pipeline_version: str = "0.1.0"

    request_timeout_seconds: int = 30
    http_max_retries: int = 0
    http_backoff_seconds: float = 1.5

    dadosjusbr_download_url: str = "https://api.dadosjusbr.org/uiapi/v2/download"
    min_payload_bytes: int = 50
    sync_concurrency: int = 3
    sync_batch_delay_seconds: float = 0.5
    sync_default_lag_months: int = 3
    sync_range_start_year: int = 2024
    archive_raw_payloads: bool = False

    # Teto constitucional (subsidio de ministro do STF) em vigor por ano.
    teto_by_year: dict[int, float] = Field(
        default_factory=lambda: {
            2023: 41650.92,
            2024: 44008.52,
            2025: 46366.19,
        }
    )

    anomaly_floor: float = 50000.0
    anomaly_min_pct: float = 200.0
    anomaly_max_results: int = 750

    read_cache_ttl_seconds: float = 60.0
    read_cache_max_entries: int = 256

    @property
    def bronze_root(self) -> Path:
        return self.data_root / "bronze"

    @property
    def manifests_root(self) -> Path:
        return self.data_root / "manifests"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
