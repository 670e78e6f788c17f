from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from app.settings import Settings
from pipelines.common.bronze_store import persist_raw_payload
from pipelines.common.manifest import read_manifest


def test_persist_raw_payload_creates_raw_and_manifest(tmp_path: Path) -> None:
    settings = Settings(
        data_root=tmp_path,
        database_url=f"sqlite:///{(tmp_path / 'test.db').as_posix()}",
    )
    raw = b"nome,valor\nAna,\"33.924,92\"\n"

    artifact = persist_raw_payload(
        settings=settings,
        source="DADOSJUSBR",
        dataset="dadosjusbr_contracheque",
        orgao_id="tjsp",
        reference_period="2025-06",
        raw_bytes=raw,
        uri="https://api.dadosjusbr.org/uiapi/v2/download?anos=2025&meses=6&orgaos=tjsp",
        rows_decoded=1,
        members_aggregated=1,
        negative_valores=2,
        extracted_at=datetime(2025, 9, 1, 12, 30, tzinfo=UTC),
        run_id="run-1",
    )

    assert artifact.local_path.read_bytes() == raw
    assert artifact.local_path.parent.name == "extracted_at=2025-09-01T12-30-00Z"
    assert artifact.local_path.parent.parent.name == "tjsp"
    assert artifact.extracted_at_utc == "2025-09-01T12:30:00Z"
    assert artifact.size_bytes == len(raw)
    assert len(artifact.checksum_sha256) == 64

    manifest = read_manifest(artifact.manifest_path)
    assert manifest.orgao_id == "tjsp"
    assert manifest.mes_referencia == "2025-06"
    assert manifest.checksum_sha256 == artifact.checksum_sha256
    assert manifest.raw_file == artifact.local_path.as_posix()
    assert manifest.run_id == "run-1"
    assert manifest.members_aggregated == 1
    assert manifest.negative_valores == 2
    assert manifest.pipeline_version == settings.pipeline_version
