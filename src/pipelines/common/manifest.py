from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml


@dataclass(frozen=True)
class ArchiveManifest:
    """Sidecar describing one archived organ-month download."""

    orgao_id: str
    mes_referencia: str
    download_url: str
    extracted_at_utc: str
    run_id: str | None
    raw_file: str
    size_bytes: int
    checksum_sha256: str
    rows_decoded: int
    members_aggregated: int
    valor_parse_failures: int
    negative_valores: int
    pipeline_version: str


_FIELD_NAMES = {item.name for item in fields(ArchiveManifest)}


def write_manifest(manifest: ArchiveManifest, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(asdict(manifest), sort_keys=False, allow_unicode=True), encoding="utf-8")


def read_manifest(path: Path) -> ArchiveManifest:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {path} is not a mapping.")
    missing = _FIELD_NAMES - set(data)
    if missing:
        raise ValueError(f"Manifest {path} is missing keys: {sorted(missing)}")
    return ArchiveManifest(**{name: data[name] for name in _FIELD_NAMES})
