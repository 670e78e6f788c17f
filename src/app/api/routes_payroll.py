from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_cache, get_db
from app.api.utils import normalize_pagination
from app.payroll_aggregations import compute_kpis, stats_by_estado, stats_by_orgao
from app.payroll_queries import (
    SORT_COLUMNS,
    MemberFilters,
    fetch_anomalies,
    fetch_available_months,
    fetch_available_years,
    fetch_latest_month,
    fetch_member_profile,
    fetch_members_by_year,
    fetch_members_for_month,
    query_members,
    search_members,
)
from app.read_cache import ReadCache
from app.schemas.errors import ErrorResponse
from app.schemas.payroll import (
    AnomalyListResponse,
    MemberListResponse,
    MemberProfileResponse,
    OrgaoStatsResponse,
    PeriodOption,
    SearchHit,
    StateStatsResponse,
    YearMemberListResponse,
)
from app.schemas.responses import PaginatedResponse
from app.settings import get_settings

router = APIRouter(tags=["payroll"])

MES_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def _month_members(db: Session, cache: ReadCache, mes: str | None) -> tuple[str | None, list[dict]]:
    target = mes or cache.get_or_load(("latest_month",), lambda: fetch_latest_month(db))
    if target is None:
        return None, []
    return target, cache.get_or_load(("members", target), lambda: fetch_members_for_month(db, target))


@router.get("/members", response_model=MemberListResponse)
def list_members(
    mes: str | None = Query(default=None, pattern=MES_PATTERN),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> MemberListResponse:
    target, members = _month_members(db, cache, mes)
    return MemberListResponse(mes_referencia=target, total=len(members), items=members)


@router.get("/members/query", response_model=PaginatedResponse, responses={400: {"model": ErrorResponse}})
def query_member_list(
    estado: str | None = Query(default=None, min_length=2, max_length=2),
    orgao: str | None = Query(default=None),
    cargo: str | None = Query(default=None),
    nome: str | None = Query(default=None),
    acima_teto: bool = Query(default=False),
    salario_min: float | None = Query(default=None, ge=0),
    salario_max: float | None = Query(default=None, ge=0),
    mes: str | None = Query(default=None, pattern=MES_PATTERN),
    sort_by: str = Query(default="maior_remuneracao"),
    page: int = Query(default=1),
    page_size: int = Query(default=50),
    db: Session = Depends(get_db),
) -> PaginatedResponse:
    if sort_by not in SORT_COLUMNS:
        raise HTTPException(
            status_code=400,
            detail={"sort_by": sort_by, "allowed": sorted(SORT_COLUMNS)},
        )
    page, page_size, _ = normalize_pagination(page, page_size)
    result = query_members(
        db,
        MemberFilters(
            estado=estado.upper() if estado else None,
            orgao=orgao,
            cargo=cargo,
            nome=nome,
            acima_teto=acima_teto,
            salario_min=salario_min,
            salario_max=salario_max,
            mes_referencia=mes,
            sort_by=sort_by,
            page=page,
            limit=page_size,
        ),
    )
    return PaginatedResponse(
        page=result["page"],
        page_size=result["limit"],
        total=result["total"],
        total_pages=result["total_pages"],
        items=result["items"],
    )


@router.get("/months", response_model=list[PeriodOption])
def list_months(
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> list[PeriodOption]:
    rows = cache.get_or_load(("months",), lambda: fetch_available_months(db))
    return [PeriodOption(**row) for row in rows]


@router.get("/years", response_model=list[PeriodOption])
def list_years(
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> list[PeriodOption]:
    rows = cache.get_or_load(("years",), lambda: fetch_available_years(db))
    return [PeriodOption(**row) for row in rows]


@router.get("/members/by-year/{year}", response_model=YearMemberListResponse)
def list_members_by_year(
    year: int,
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> YearMemberListResponse:
    rows = cache.get_or_load(("members_by_year", year), lambda: fetch_members_by_year(db, year))
    return YearMemberListResponse(ano=year, total=len(rows), items=rows)


@router.get("/anomalies", response_model=AnomalyListResponse)
def list_anomalies(
    ano: int = Query(ge=2018, le=2030),
    min_pct: float | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> AnomalyListResponse:
    settings = get_settings()
    threshold = min_pct if min_pct is not None else settings.anomaly_min_pct
    rows = cache.get_or_load(
        ("anomalies", ano, threshold),
        lambda: fetch_anomalies(
            db,
            ano,
            min_pct=threshold,
            floor=settings.anomaly_floor,
            limit=settings.anomaly_max_results,
        ),
    )
    return AnomalyListResponse(
        ano=ano,
        min_pct=threshold,
        floor=settings.anomaly_floor,
        total=len(rows),
        items=rows,
    )


@router.get(
    "/members/{orgao_slug}/{nome_slug}",
    response_model=MemberProfileResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_member_profile(
    orgao_slug: str,
    nome_slug: str,
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> MemberProfileResponse:
    profile = cache.get_or_load(
        ("profile", orgao_slug.lower(), nome_slug.lower()),
        lambda: fetch_member_profile(db, orgao_slug, nome_slug),
    )
    if profile is None:
        raise HTTPException(
            status_code=404,
            detail={"orgao_slug": orgao_slug, "nome_slug": nome_slug, "reason": "member not found"},
        )
    return MemberProfileResponse(**profile)


@router.get("/search", response_model=list[SearchHit])
def search(
    q: str = Query(default=""),
    limit: int = Query(default=8, ge=1, le=50),
    db: Session = Depends(get_db),
) -> list[SearchHit]:
    return [SearchHit(**row) for row in search_members(db, q, limit=limit)]


@router.get("/stats/estados", response_model=StateStatsResponse)
def get_state_stats(
    mes: str | None = Query(default=None, pattern=MES_PATTERN),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> StateStatsResponse:
    target, members = _month_members(db, cache, mes)
    return StateStatsResponse(
        mes_referencia=target,
        kpis=compute_kpis(members),
        items=[stats.as_dict() for stats in stats_by_estado(members)],
    )


@router.get("/stats/orgaos", response_model=OrgaoStatsResponse)
def get_orgao_stats(
    mes: str | None = Query(default=None, pattern=MES_PATTERN),
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_cache),
) -> OrgaoStatsResponse:
    target, members = _month_members(db, cache, mes)
    return OrgaoStatsResponse(
        mes_referencia=target,
        kpis=compute_kpis(members),
        items=[stats.as_dict() for stats in stats_by_orgao(members)],
    )
