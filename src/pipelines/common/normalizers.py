"""Field normalizers for DadosJusBr payroll exports.

Every function here is pure and fails open: an unparseable value becomes 0, an
unknown role falls back to the organ's default career, and an unresolvable
lotacao is attributed to DF. Precedence lives in explicit rule tables so each
rule can be tested on its own.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Callable

from app.logging import get_logger
from pipelines.common.organ_tables import (
    FEDERAL_MP_CODES,
    FEDERAL_MP_IDS,
    PRM_CIDADE_ESTADO,
    PRR_REGIAO_ESTADO,
    TRT_REGIAO_ESTADO,
)

_CENTS_PATTERN = re.compile(r"^-?\d+$")
_LEADING_FLOAT_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")

DEFAULT_ESTADO = "DF"

logger = get_logger("normalizers")


@dataclass
class ParseDiagnostics:
    """Counts values that could not be parsed and were replaced by zero, and
    negative values that were left out of the category sums."""

    failures: int = 0
    negatives: int = 0
    samples: list[str] = field(default_factory=list)
    max_samples: int = 5

    def record(self, raw: str) -> None:
        self.failures += 1
        self._sample(raw)

    def record_negative(self, raw: str) -> None:
        self.negatives += 1
        self._sample(raw)

    def _sample(self, raw: str) -> None:
        if len(self.samples) < self.max_samples:
            self.samples.append(raw)


def _leading_float(token: str) -> float | None:
    match = _LEADING_FLOAT_PATTERN.match(token)
    if match is None:
        return None
    return float(match.group(0))


def parse_valor(raw: str | None, diagnostics: ParseDiagnostics | None = None) -> float:
    """Parse a DadosJusBr monetary value.

    Accepted shapes, checked in order:
      "33.924,92" (pt-BR, comma is the decimal separator) -> 33924.92
      "3392492"   (integer cents, no separators)          -> 33924.92
      "123.45"    (plain decimal)                          -> 123.45
    A bare integer is always cents, never whole reais.
    """
    if raw is None:
        return 0.0
    token = str(raw).strip()
    if token in ("", "0"):
        return 0.0

    if "," in token:
        parsed = _leading_float(token.replace(".", "").replace(",", ".", 1))
    elif _CENTS_PATTERN.match(token):
        return int(token) / 100
    else:
        parsed = _leading_float(token)

    if parsed is None:
        if diagnostics is not None:
            diagnostics.record(token)
        logger.debug("Could not parse monetary value; counted as zero.", raw=token)
        return 0.0
    return parsed


CARGO_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("desembargador",), "Desembargador(a)"),
    (("juiz", "juíz"), "Juiz(a)"),
    (("ministro",), "Ministro(a)"),
    (("promotor",), "Promotor(a)"),
    (("procurador",), "Procurador(a)"),
    (("defensor",), "Defensor(a) Público(a)"),
)


def classify_cargo(role: str | None, orgao_id: str) -> str:
    lowered = (role or "").lower()
    for keywords, cargo in CARGO_RULES:
        if any(keyword in lowered for keyword in keywords):
            return cargo
    if orgao_id.lower().startswith("mp"):
        return "Promotor(a)"
    return "Juiz(a)"


def is_federal_mp(orgao_id: str) -> bool:
    return orgao_id.lower() in FEDERAL_MP_IDS


def map_orgao_id(orgao_id: str) -> str:
    token = orgao_id.strip().lower()
    if token in FEDERAL_MP_CODES:
        return FEDERAL_MP_CODES[token]
    prefix = token[:2].upper()
    suffix = token[2:].upper()
    if prefix == "TJ":
        return "TJ-DF" if suffix == "DFT" else f"TJ-{suffix}"
    if prefix == "MP":
        return f"MP-{suffix}"
    return token.upper()


def map_estado(orgao_id: str) -> str:
    suffix = orgao_id.strip()[2:].upper()
    if suffix == "DFT":
        return "DF"
    return suffix


LotacaoRule = tuple[re.Pattern[str], Callable[[re.Match[str]], str]]


def _lookup(table: dict[str, str]) -> Callable[[re.Match[str]], str]:
    return lambda match: table.get(match.group(1), DEFAULT_ESTADO)


def _captured(match: re.Match[str]) -> str:
    return match.group(1)


LOTACAO_RULES: dict[str, tuple[LotacaoRule, ...]] = {
    "mpf": (
        (re.compile(r"^PR-([A-Z]{2})$"), _captured),
        (re.compile(r"PRR(\d)"), _lookup(PRR_REGIAO_ESTADO)),
        (re.compile(r"^PRM-(.+)$"), _lookup(PRM_CIDADE_ESTADO)),
    ),
    "mpt": ((re.compile(r"(\d+)[ªº]\s*REGI"), _lookup(TRT_REGIAO_ESTADO)),),
    "mpm": ((re.compile(r"/([A-Z]{2})\s*$"), _captured),),
    "mpdft": (),
}


def resolve_estado_from_lotacao(orgao_id: str, lotacao: str | None) -> str:
    """State of a federal MP member, read from the free-text lotacao.

    Federal staff are not partitioned by organ id, so the workplace is the only
    hint. PGR, secretariats and anything unrecognized land in DF.
    """
    if not lotacao:
        return DEFAULT_ESTADO
    normalized = lotacao.strip().upper()
    for pattern, resolve in LOTACAO_RULES.get(orgao_id.lower(), ()):
        match = pattern.search(normalized)
        if match:
            return resolve(match)
    return DEFAULT_ESTADO


def resolve_estado(orgao_id: str, lotacao: str | None = None) -> str:
    if is_federal_mp(orgao_id):
        return resolve_estado_from_lotacao(orgao_id, lotacao)
    return map_estado(orgao_id)


def remove_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(value: str) -> str:
    return _SLUG_SEPARATORS.sub("-", remove_accents(value).lower()).strip("-")
