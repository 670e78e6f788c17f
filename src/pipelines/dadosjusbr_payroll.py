from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from app.logging import get_logger
from app.settings import Settings, get_settings
from pipelines.common.compensation_store import CompensationRecord, build_compensation_record
from pipelines.common.http_client import AsyncHttpClient, HttpRequestError
from pipelines.common.normalizers import (
    ParseDiagnostics,
    classify_cargo,
    is_federal_mp,
    map_orgao_id,
    parse_valor,
    resolve_estado,
)
from pipelines.common.tabular import PayrollLine, decode_delimited, payroll_line_from_row

SOURCE = "DADOSJUSBR"
DATASET_NAME = "dadosjusbr_contracheque"

BUCKET_BASE = "remuneracao_base"
BUCKET_INDENIZATORIAS = "verbas_indenizatorias"
BUCKET_EVENTUAIS = "direitos_eventuais"
BUCKET_PESSOAIS = "direitos_pessoais"

# Sub-classification of "outras" lines by desambiguacao_macro, first match wins.
OUTRAS_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("aux-", "alimentacao", "saude", "moradia", "transporte"), BUCKET_INDENIZATORIAS),
    (("ferias", "natalina", "abono", "licenca", "diarias", "pecunia"), BUCKET_EVENTUAIS),
    (("tempo-de-servico", "gratificacao", "substituicao"), BUCKET_PESSOAIS),
)
OUTRAS_FALLBACK_BUCKET = BUCKET_INDENIZATORIAS

logger = get_logger("dadosjusbr_payroll")


class OrgaoFetchError(Exception):
    """Base class for a failed organ-month download."""

    def __init__(self, orgao_id: str, message: str) -> None:
        self.orgao_id = orgao_id
        super().__init__(message)


class UpstreamHTTPError(OrgaoFetchError):
    def __init__(self, orgao_id: str, *, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        label = f"HTTP {status_code}" if status_code is not None else "Network error"
        message = f"{label} for {orgao_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(orgao_id, message)


class EmptyPayloadError(OrgaoFetchError):
    def __init__(self, orgao_id: str, *, size_bytes: int) -> None:
        self.size_bytes = size_bytes
        super().__init__(orgao_id, f"Empty response for {orgao_id} ({size_bytes} bytes)")


class NoDataRowsError(OrgaoFetchError):
    def __init__(self, orgao_id: str) -> None:
        super().__init__(orgao_id, f"No data rows for {orgao_id}")


@dataclass
class MemberAggregate:
    nome: str
    cargo: str
    orgao: str
    estado: str
    remuneracao_base: float = 0.0
    verbas_indenizatorias: float = 0.0
    direitos_eventuais: float = 0.0
    direitos_pessoais: float = 0.0

    def add(self, bucket: str, valor: float) -> None:
        setattr(self, bucket, getattr(self, bucket) + valor)

    def to_record(self, *, year: int, month: int, ceiling: float) -> CompensationRecord:
        return build_compensation_record(
            nome=self.nome,
            cargo=self.cargo,
            orgao=self.orgao,
            estado=self.estado,
            remuneracao_base=self.remuneracao_base,
            verbas_indenizatorias=self.verbas_indenizatorias,
            direitos_eventuais=self.direitos_eventuais,
            direitos_pessoais=self.direitos_pessoais,
            year=year,
            month=month,
            ceiling=ceiling,
        )


@dataclass(frozen=True)
class OrgaoPayload:
    orgao_id: str
    url: str
    raw_bytes: bytes
    rows_decoded: int
    members: list[MemberAggregate]
    diagnostics: ParseDiagnostics


def classify_outras(macro: str) -> str:
    lowered = macro.lower()
    for keywords, bucket in OUTRAS_RULES:
        if any(keyword in lowered for keyword in keywords):
            return bucket
    return OUTRAS_FALLBACK_BUCKET


def _bucket_for(line: PayrollLine) -> str | None:
    if line.categoria == "base":
        return BUCKET_BASE
    if line.categoria == "outras":
        return classify_outras(line.macro)
    # descontos and anything else: gross figures only.
    return None


def aggregate_members(
    lines: Iterable[PayrollLine],
    orgao_id: str,
    diagnostics: ParseDiagnostics | None = None,
) -> list[MemberAggregate]:
    """Fold contracheque lines into one aggregate per exact member name."""
    orgao = map_orgao_id(orgao_id)
    federal = is_federal_mp(orgao_id)
    default_estado = None if federal else resolve_estado(orgao_id)

    members: dict[str, MemberAggregate] = {}
    for line in lines:
        if not line.nome:
            continue

        member = members.get(line.nome)
        if member is None:
            member = MemberAggregate(
                nome=line.nome,
                cargo=classify_cargo(line.cargo, orgao_id),
                orgao=orgao,
                estado=resolve_estado(orgao_id, line.lotacao) if federal else default_estado,
            )
            members[line.nome] = member

        bucket = _bucket_for(line)
        if bucket is None:
            continue
        value = parse_valor(line.valor, diagnostics)
        if value < 0:
            # Categories only accumulate non-negative amounts.
            if diagnostics is not None:
                diagnostics.record_negative(line.valor)
            continue
        member.add(bucket, value)

    return list(members.values())


def build_download_url(settings: Settings, orgao_id: str, year: int, month: int) -> str:
    base = settings.dadosjusbr_download_url.rstrip("/")
    return f"{base}?anos={year}&meses={month}&orgaos={orgao_id}"


async def fetch_orgao_members(
    client: AsyncHttpClient,
    orgao_id: str,
    year: int,
    month: int,
    *,
    settings: Settings | None = None,
) -> OrgaoPayload:
    settings = settings or get_settings()
    url = build_download_url(settings, orgao_id, year, month)

    try:
        raw_bytes = await client.get_bytes(url)
    except HttpRequestError as exc:
        raise UpstreamHTTPError(orgao_id, status_code=exc.status_code, detail=exc.reason) from exc

    if len(raw_bytes) < settings.min_payload_bytes:
        raise EmptyPayloadError(orgao_id, size_bytes=len(raw_bytes))

    rows = decode_delimited(raw_bytes.decode("utf-8-sig", errors="replace"))
    if not rows:
        raise NoDataRowsError(orgao_id)

    diagnostics = ParseDiagnostics()
    members = aggregate_members((payroll_line_from_row(row) for row in rows), orgao_id, diagnostics)
    if diagnostics.failures or diagnostics.negatives:
        logger.warning(
            "Some monetary values could not be parsed or were negative.",
            orgao_id=orgao_id,
            failures=diagnostics.failures,
            negatives=diagnostics.negatives,
            samples=diagnostics.samples,
        )
    return OrgaoPayload(
        orgao_id=orgao_id,
        url=url,
        raw_bytes=raw_bytes,
        rows_decoded=len(rows),
        members=members,
        diagnostics=diagnostics,
    )
