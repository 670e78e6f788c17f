from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from hashlib import sha256
from pathlib import Path

from app.settings import Settings
from pipelines.common.manifest import ArchiveManifest, write_manifest


@dataclass(frozen=True)
class BronzeArtifact:
    orgao_id: str
    reference_period: str
    extracted_at_utc: str
    local_path: Path
    manifest_path: Path
    size_bytes: int
    checksum_sha256: str
    uri: str


def _slug(value: str) -> str:
    return (
        value.strip()
        .lower()
        .replace(" ", "_")
        .replace("/", "_")
        .replace("\\", "_")
        .replace(":", "_")
    )


def _timestamp_folder(extracted_at: datetime) -> str:
    return extracted_at.replace(microsecond=0).isoformat().replace("+00:00", "Z").replace(":", "-")


def persist_raw_payload(
    *,
    settings: Settings,
    source: str,
    dataset: str,
    orgao_id: str,
    reference_period: str,
    raw_bytes: bytes,
    uri: str,
    rows_decoded: int = 0,
    members_aggregated: int = 0,
    parse_failures: int = 0,
    negative_valores: int = 0,
    extracted_at: datetime | None = None,
    run_id: str | None = None,
) -> BronzeArtifact:
    """Archive one organ-month CSV as downloaded, next to a YAML manifest."""
    extracted_at = extracted_at or datetime.now(UTC)
    if extracted_at.tzinfo is None:
        extracted_at = extracted_at.replace(tzinfo=UTC)
    extracted_at_utc = extracted_at.replace(microsecond=0).isoformat().replace("+00:00", "Z")

    partition = Path(_slug(source)) / _slug(dataset) / _slug(reference_period) / _slug(orgao_id)
    ts_folder = _timestamp_folder(extracted_at)

    bronze_dir = settings.bronze_root / partition / f"extracted_at={ts_folder}"
    bronze_dir.mkdir(parents=True, exist_ok=True)
    raw_path = bronze_dir / "raw.csv"
    raw_path.write_bytes(raw_bytes)
    checksum = sha256(raw_bytes).hexdigest()

    manifest_path = settings.manifests_root / partition / f"extracted_at={ts_folder}.yml"
    write_manifest(
        ArchiveManifest(
            orgao_id=orgao_id,
            mes_referencia=reference_period,
            download_url=uri,
            extracted_at_utc=extracted_at_utc,
            run_id=run_id,
            raw_file=raw_path.as_posix(),
            size_bytes=len(raw_bytes),
            checksum_sha256=checksum,
            rows_decoded=rows_decoded,
            members_aggregated=members_aggregated,
            valor_parse_failures=parse_failures,
            negative_valores=negative_valores,
            pipeline_version=settings.pipeline_version,
        ),
        manifest_path,
    )

    return BronzeArtifact(
        orgao_id=orgao_id,
        reference_period=reference_period,
        extracted_at_utc=extracted_at_utc,
        local_path=raw_path,
        manifest_path=manifest_path,
        size_bytes=len(raw_bytes),
        checksum_sha256=checksum,
        uri=uri,
    )
