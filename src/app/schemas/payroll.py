from __future__ import annotations

from pydantic import BaseModel


class MemberItem(BaseModel):
    id: int
    nome: str
    cargo: str
    orgao: str
    estado: str
    remuneracao_base: float
    verbas_indenizatorias: float
    direitos_eventuais: float
    direitos_pessoais: float
    remuneracao_total: float
    acima_teto: float
    percentual_acima_teto: float
    mes_referencia: str
    ano_referencia: int


class MemberListResponse(BaseModel):
    mes_referencia: str | None
    total: int
    items: list[MemberItem]


class YearMemberItem(BaseModel):
    id: int
    nome: str
    cargo: str
    orgao: str
    estado: str
    remuneracao_base: float
    verbas_indenizatorias: float
    direitos_eventuais: float
    direitos_pessoais: float
    remuneracao_total: float
    acima_teto: float
    percentual_acima_teto: float
    meses: int


class YearMemberListResponse(BaseModel):
    ano: int
    total: int
    items: list[YearMemberItem]


class PeriodOption(BaseModel):
    value: str
    label: str


class AnomalyItem(BaseModel):
    nome: str
    cargo: str
    orgao: str
    estado: str
    mes_anterior: str
    mes_atual: str
    total_anterior: float
    total_atual: float
    variacao_abs: float
    variacao_pct: float


class AnomalyListResponse(BaseModel):
    ano: int
    min_pct: float
    floor: float
    total: int
    items: list[AnomalyItem]


class MonthlyHistoryItem(BaseModel):
    mes: str
    remuneracao_base: float
    verbas_indenizatorias: float
    direitos_eventuais: float
    direitos_pessoais: float
    remuneracao_total: float
    acima_teto: float


class MemberProfileResponse(BaseModel):
    nome: str
    cargo: str
    orgao: str
    estado: str
    mes_recente: str
    remuneracao_base: float
    verbas_indenizatorias: float
    direitos_eventuais: float
    direitos_pessoais: float
    remuneracao_atual: float
    acima_teto: float
    percentual_acima_teto: float
    total_acima_teto: float
    meses_com_dados: int
    media_total: float
    valor_pico: float
    mes_pico: str
    rank_no_orgao: int
    total_no_orgao: int
    historico: list[MonthlyHistoryItem]


class SearchHit(BaseModel):
    id: int
    nome: str
    cargo: str
    orgao: str
    estado: str
    remuneracao_total: float
    mes_referencia: str


class StateStatsItem(BaseModel):
    estado: str
    total_membros: int
    membros_acima_teto: int
    total_acima_teto: float
    media_remuneracao: float
    maior_remuneracao: float
    percentual_acima_teto: float


class OrgaoStatsItem(BaseModel):
    orgao: str
    estado: str
    total_membros: int
    membros_acima_teto: int
    total_acima_teto: float
    media_remuneracao: float
    media_acima_teto: float
    maior_remuneracao: float
    percentual_acima_teto: float


class KpiSummary(BaseModel):
    total_membros: int
    num_acima_teto: int
    total_acima_teto: float
    total_acima_teto_anualizado: float
    media_acima_teto: float
    maior_remuneracao: float
    percentual_acima_teto: float


class StateStatsResponse(BaseModel):
    mes_referencia: str | None
    kpis: KpiSummary
    items: list[StateStatsItem]


class OrgaoStatsResponse(BaseModel):
    mes_referencia: str | None
    kpis: KpiSummary
    items: list[OrgaoStatsItem]
