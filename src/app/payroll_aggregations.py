from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from pipelines.common.organ_tables import FEDERAL_MP_CODES

FEDERAL_ESTADO_LABEL = "Federal"
_FEDERAL_ORGAOS = frozenset(FEDERAL_MP_CODES.values())

MemberRow = Mapping[str, Any]


@dataclass
class StateStats:
    estado: str
    total_membros: int = 0
    membros_acima_teto: int = 0
    total_acima_teto: float = 0.0
    media_remuneracao: float = 0.0
    maior_remuneracao: float = 0.0
    percentual_acima_teto: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OrgaoStats:
    orgao: str
    estado: str
    total_membros: int = 0
    membros_acima_teto: int = 0
    total_acima_teto: float = 0.0
    media_remuneracao: float = 0.0
    media_acima_teto: float = 0.0
    maior_remuneracao: float = 0.0
    percentual_acima_teto: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _sorted_by_total(stats: Iterable[Any]) -> list[Any]:
    return sorted(stats, key=lambda item: item.total_acima_teto, reverse=True)


def stats_by_estado(records: Iterable[MemberRow]) -> list[StateStats]:
    by_estado: dict[str, StateStats] = {}
    totals: dict[str, float] = {}
    for record in records:
        estado = str(record["estado"])
        stats = by_estado.setdefault(estado, StateStats(estado=estado))
        total = float(record["remuneracao_total"])
        acima = float(record["acima_teto"])
        stats.total_membros += 1
        if acima > 0:
            stats.membros_acima_teto += 1
            stats.total_acima_teto += acima
        stats.maior_remuneracao = max(stats.maior_remuneracao, total)
        totals[estado] = totals.get(estado, 0.0) + total

    for estado, stats in by_estado.items():
        stats.media_remuneracao = totals[estado] / stats.total_membros
        stats.percentual_acima_teto = stats.membros_acima_teto / stats.total_membros * 100
    return _sorted_by_total(by_estado.values())


def stats_by_orgao(records: Iterable[MemberRow]) -> list[OrgaoStats]:
    """Per-organ stats. Federal prosecution branches span states and report as `Federal`."""
    by_orgao: dict[str, OrgaoStats] = {}
    totals: dict[str, float] = {}
    for record in records:
        orgao = str(record["orgao"])
        stats = by_orgao.get(orgao)
        if stats is None:
            estado = FEDERAL_ESTADO_LABEL if orgao in _FEDERAL_ORGAOS else str(record["estado"])
            stats = by_orgao[orgao] = OrgaoStats(orgao=orgao, estado=estado)
        total = float(record["remuneracao_total"])
        acima = float(record["acima_teto"])
        stats.total_membros += 1
        if acima > 0:
            stats.membros_acima_teto += 1
            stats.total_acima_teto += acima
        stats.maior_remuneracao = max(stats.maior_remuneracao, total)
        totals[orgao] = totals.get(orgao, 0.0) + total

    for orgao, stats in by_orgao.items():
        stats.media_remuneracao = totals[orgao] / stats.total_membros
        if stats.membros_acima_teto:
            stats.media_acima_teto = stats.total_acima_teto / stats.membros_acima_teto
        stats.percentual_acima_teto = stats.membros_acima_teto / stats.total_membros * 100
    return _sorted_by_total(by_orgao.values())


def compute_kpis(records: Iterable[MemberRow]) -> dict[str, Any]:
    rows = list(records)
    above = [float(row["acima_teto"]) for row in rows if float(row["acima_teto"]) > 0]
    total_acima = sum(above)
    return {
        "total_membros": len(rows),
        "num_acima_teto": len(above),
        "total_acima_teto": total_acima,
        "total_acima_teto_anualizado": total_acima * 12,
        "media_acima_teto": total_acima / len(above) if above else 0.0,
        "maior_remuneracao": max((float(row["remuneracao_total"]) for row in rows), default=0.0),
        "percentual_acima_teto": len(above) / len(rows) * 100 if rows else 0.0,
    }
