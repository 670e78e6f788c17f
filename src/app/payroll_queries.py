from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from pipelines.common.normalizers import remove_accents, slugify

MONTH_LABELS = ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez")
MEMBER_COLUMNS = """
    id,
    nome,
    cargo,
    orgao,
    estado,
    remuneracao_base,
    verbas_indenizatorias,
    direitos_eventuais,
    direitos_pessoais,
    remuneracao_total,
    acima_teto,
    percentual_acima_teto,
    mes_referencia,
    ano_referencia
"""
SORT_COLUMNS: dict[str, str] = {
    "maior_remuneracao": "remuneracao_total DESC",
    "maior_acima_teto": "acima_teto DESC",
    "maior_percentual": "percentual_acima_teto DESC",
    "nome_az": "nome ASC",
    "orgao": "orgao ASC",
}
DEFAULT_SORT = "maior_remuneracao"
MAX_QUERY_LIMIT = 200
MIN_SEARCH_CHARS = 2

_SEARCH_STRIP = re.compile(r"[^\w\s-]")


@dataclass(frozen=True)
class MemberFilters:
    estado: str | None = None
    orgao: str | None = None
    cargo: str | None = None
    nome: str | None = None
    acima_teto: bool = False
    salario_min: float | None = None
    salario_max: float | None = None
    mes_referencia: str | None = None
    sort_by: str = DEFAULT_SORT
    page: int = 1
    limit: int = 50


def month_label(mes_referencia: str) -> str:
    year, month = mes_referencia.split("-", 1)
    return f"{MONTH_LABELS[int(month) - 1]}/{year}"


def fetch_latest_month(session: Session) -> str | None:
    return session.execute(text("SELECT MAX(mes_referencia) FROM membros")).scalar_one_or_none()


def fetch_members_for_month(session: Session, mes_referencia: str | None = None) -> list[dict[str, Any]]:
    target = mes_referencia or fetch_latest_month(session)
    if not target:
        return []
    rows = session.execute(
        text(
            f"""
            SELECT {MEMBER_COLUMNS}
            FROM membros
            WHERE mes_referencia = :mes
            ORDER BY remuneracao_total DESC
            """
        ),
        {"mes": target},
    ).mappings().all()
    return [dict(row) for row in rows]


def fetch_available_months(session: Session) -> list[dict[str, str]]:
    rows = session.execute(
        text("SELECT DISTINCT mes_referencia FROM membros ORDER BY mes_referencia DESC")
    ).scalars().all()
    return [{"value": mes, "label": month_label(mes)} for mes in rows]


def fetch_available_years(session: Session) -> list[dict[str, str]]:
    rows = session.execute(
        text("SELECT DISTINCT ano_referencia FROM membros ORDER BY ano_referencia DESC")
    ).scalars().all()
    return [{"value": str(year), "label": str(year)} for year in rows]


def fetch_members_by_year(session: Session, year: int) -> list[dict[str, Any]]:
    """Sum every month of `year` per (nome, orgao); the percentage is the monthly mean."""
    rows = session.execute(
        text(
            """
            SELECT
                nome,
                MAX(cargo) AS cargo,
                orgao,
                MAX(estado) AS estado,
                SUM(remuneracao_base) AS remuneracao_base,
                SUM(verbas_indenizatorias) AS verbas_indenizatorias,
                SUM(direitos_eventuais) AS direitos_eventuais,
                SUM(direitos_pessoais) AS direitos_pessoais,
                SUM(remuneracao_total) AS remuneracao_total,
                SUM(acima_teto) AS acima_teto,
                AVG(percentual_acima_teto) AS percentual_acima_teto,
                COUNT(*) AS meses
            FROM membros
            WHERE ano_referencia = :year
            GROUP BY nome, orgao
            ORDER BY remuneracao_total DESC
            """
        ),
        {"year": year},
    ).mappings().all()
    return [{"id": index, **dict(row)} for index, row in enumerate(rows, start=1)]


def fetch_anomalies(
    session: Session,
    year: int,
    min_pct: float = 200.0,
    floor: float = 50000.0,
    limit: int = 750,
) -> list[dict[str, Any]]:
    """Month-over-month jumps above `min_pct` percent for members already earning `floor`.

    The previous month may fall in the prior year, so January is compared with
    December.
    """
    rows = session.execute(
        text(
            """
            WITH ordered AS (
                SELECT
                    nome,
                    cargo,
                    orgao,
                    estado,
                    mes_referencia,
                    remuneracao_total,
                    LAG(mes_referencia) OVER (PARTITION BY nome, orgao ORDER BY mes_referencia) AS mes_anterior,
                    LAG(remuneracao_total) OVER (PARTITION BY nome, orgao ORDER BY mes_referencia) AS total_anterior
                FROM membros
                WHERE ano_referencia IN (:year, :previous_year)
            )
            SELECT
                nome,
                cargo,
                orgao,
                estado,
                mes_anterior,
                mes_referencia AS mes_atual,
                total_anterior,
                remuneracao_total AS total_atual,
                remuneracao_total - total_anterior AS variacao_abs,
                (remuneracao_total - total_anterior) / total_anterior * 100 AS variacao_pct
            FROM ordered
            WHERE mes_anterior IS NOT NULL
              AND total_anterior >= :floor
              AND substr(mes_referencia, 1, 4) = :year_text
              AND remuneracao_total > total_anterior * :multiplier
            ORDER BY variacao_abs DESC
            LIMIT :limit
            """
        ),
        {
            "year": year,
            "previous_year": year - 1,
            "year_text": str(year),
            "floor": floor,
            "multiplier": 1 + min_pct / 100,
            "limit": limit,
        },
    ).mappings().all()
    return [dict(row) for row in rows]


def _resolve_member_identity(session: Session, orgao_slug: str, nome_slug: str) -> tuple[str, str] | None:
    rows = session.execute(
        text("SELECT DISTINCT nome, orgao FROM membros ORDER BY orgao, nome")
    ).all()
    for nome, orgao in rows:
        if slugify(orgao) == orgao_slug and slugify(nome) == nome_slug:
            return str(nome), str(orgao)
    return None


def fetch_member_profile(session: Session, orgao_slug: str, nome_slug: str) -> dict[str, Any] | None:
    identity = _resolve_member_identity(session, orgao_slug.lower(), nome_slug.lower())
    if identity is None:
        return None
    nome, orgao = identity

    history = session.execute(
        text(
            f"""
            SELECT {MEMBER_COLUMNS}
            FROM membros
            WHERE nome = :nome AND orgao = :orgao
            ORDER BY mes_referencia
            """
        ),
        {"nome": nome, "orgao": orgao},
    ).mappings().all()
    latest = history[-1]
    peak = max(history, key=lambda row: row["remuneracao_total"])

    ranking = session.execute(
        text(
            """
            SELECT
                SUM(CASE WHEN remuneracao_total > :total THEN 1 ELSE 0 END) + 1 AS rank_no_orgao,
                COUNT(*) AS total_no_orgao
            FROM membros
            WHERE orgao = :orgao AND mes_referencia = :mes
            """
        ),
        {"orgao": orgao, "mes": latest["mes_referencia"], "total": latest["remuneracao_total"]},
    ).mappings().one()

    totals = [float(row["remuneracao_total"]) for row in history]
    return {
        "nome": nome,
        "cargo": latest["cargo"],
        "orgao": orgao,
        "estado": latest["estado"],
        "mes_recente": latest["mes_referencia"],
        "remuneracao_base": latest["remuneracao_base"],
        "verbas_indenizatorias": latest["verbas_indenizatorias"],
        "direitos_eventuais": latest["direitos_eventuais"],
        "direitos_pessoais": latest["direitos_pessoais"],
        "remuneracao_atual": latest["remuneracao_total"],
        "acima_teto": latest["acima_teto"],
        "percentual_acima_teto": latest["percentual_acima_teto"],
        "total_acima_teto": sum(float(row["acima_teto"]) for row in history),
        "meses_com_dados": len(history),
        "media_total": sum(totals) / len(totals),
        "valor_pico": peak["remuneracao_total"],
        "mes_pico": peak["mes_referencia"],
        "rank_no_orgao": int(ranking["rank_no_orgao"]),
        "total_no_orgao": int(ranking["total_no_orgao"]),
        "historico": [
            {
                "mes": row["mes_referencia"],
                "remuneracao_base": row["remuneracao_base"],
                "verbas_indenizatorias": row["verbas_indenizatorias"],
                "direitos_eventuais": row["direitos_eventuais"],
                "direitos_pessoais": row["direitos_pessoais"],
                "remuneracao_total": row["remuneracao_total"],
                "acima_teto": row["acima_teto"],
            }
            for row in history
        ],
    }


def build_search_expression(query: str) -> str:
    """`"João Silva"` -> `"joao* silva*"` for an FTS5 prefix match."""
    normalized = _SEARCH_STRIP.sub("", remove_accents(query))
    return " ".join(f"{term}*" for term in normalized.split())


def _search_index_exists(session: Session) -> bool:
    return (
        session.execute(
            text("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'membros_fts'")
        ).first()
        is not None
    )


def search_members(session: Session, query: str, limit: int = 8) -> list[dict[str, Any]]:
    cleaned = query.strip()
    if len(cleaned) < MIN_SEARCH_CHARS:
        return []

    expression = build_search_expression(cleaned)
    if not expression:
        return []

    if _search_index_exists(session):
        try:
            rows = session.execute(
                text(
                    """
                    SELECT m.id, m.nome, m.cargo, m.orgao, m.estado, m.remuneracao_total, m.mes_referencia
                    FROM membros_fts AS fts
                    JOIN membros AS m ON m.id = fts.rowid
                    WHERE membros_fts MATCH :expression
                    ORDER BY m.remuneracao_total DESC
                    LIMIT :limit
                    """
                ),
                {"expression": expression, "limit": limit},
            ).mappings().all()
            return [dict(row) for row in rows]
        except OperationalError:
            # Malformed MATCH syntax from user input; retry as a plain substring search.
            session.rollback()

    like = f"%{_SEARCH_STRIP.sub('', cleaned)}%"
    rows = session.execute(
        text(
            """
            SELECT id, nome, cargo, orgao, estado, remuneracao_total, mes_referencia
            FROM membros
            WHERE nome LIKE :like OR cargo LIKE :like OR orgao LIKE :like
            ORDER BY remuneracao_total DESC
            LIMIT :limit
            """
        ),
        {"like": like, "limit": limit},
    ).mappings().all()
    return [dict(row) for row in rows]


def _filter_clause(filters: MemberFilters) -> tuple[str, dict[str, Any]]:
    clauses: list[str] = []
    params: dict[str, Any] = {}
    if filters.estado:
        clauses.append("estado = :estado")
        params["estado"] = filters.estado
    if filters.orgao:
        clauses.append("orgao = :orgao")
        params["orgao"] = filters.orgao
    if filters.cargo:
        clauses.append("cargo = :cargo")
        params["cargo"] = filters.cargo
    if filters.nome:
        clauses.append("nome LIKE :nome")
        params["nome"] = f"%{filters.nome}%"
    if filters.acima_teto:
        clauses.append("acima_teto >= 0.01")
    if filters.salario_min:
        clauses.append("remuneracao_total >= :salario_min")
        params["salario_min"] = filters.salario_min
    if filters.salario_max:
        clauses.append("remuneracao_total <= :salario_max")
        params["salario_max"] = filters.salario_max
    if filters.mes_referencia:
        clauses.append("mes_referencia = :mes")
        params["mes"] = filters.mes_referencia
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def query_members(session: Session, filters: MemberFilters) -> dict[str, Any]:
    page = max(1, filters.page)
    limit = max(1, min(filters.limit, MAX_QUERY_LIMIT))
    offset = (page - 1) * limit
    order_by = SORT_COLUMNS.get(filters.sort_by, SORT_COLUMNS[DEFAULT_SORT])
    where, params = _filter_clause(filters)

    total = int(session.execute(text(f"SELECT COUNT(*) FROM membros {where}"), params).scalar_one())
    rows = session.execute(
        text(
            f"""
            SELECT {MEMBER_COLUMNS}
            FROM membros
            {where}
            ORDER BY {order_by}, id
            LIMIT :limit OFFSET :offset
            """
        ),
        {**params, "limit": limit, "offset": offset},
    ).mappings().all()

    return {
        "items": [dict(row) for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": -(-total // limit),
    }
