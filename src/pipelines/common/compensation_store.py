from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from sqlalchemy import text
from sqlalchemy.orm import Session

from pipelines.common.ceiling import compute_ceiling

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS membros (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nome TEXT NOT NULL,
        cargo TEXT NOT NULL,
        orgao TEXT NOT NULL,
        estado TEXT NOT NULL,
        remuneracao_base REAL NOT NULL,
        verbas_indenizatorias REAL NOT NULL,
        direitos_eventuais REAL NOT NULL,
        direitos_pessoais REAL NOT NULL,
        remuneracao_total REAL NOT NULL,
        acima_teto REAL NOT NULL,
        percentual_acima_teto REAL NOT NULL,
        mes_referencia TEXT NOT NULL,
        ano_referencia INTEGER NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS historico_mensal (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        membro_id INTEGER NOT NULL REFERENCES membros(id),
        mes TEXT NOT NULL,
        remuneracao_base REAL NOT NULL,
        remuneracao_total REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sync_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        orgao TEXT NOT NULL,
        mes_referencia TEXT NOT NULL,
        total_membros INTEGER NOT NULL,
        status TEXT NOT NULL,
        error_message TEXT,
        synced_at TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_membros_estado ON membros(estado)",
    "CREATE INDEX IF NOT EXISTS idx_membros_orgao ON membros(orgao)",
    "CREATE INDEX IF NOT EXISTS idx_membros_remuneracao ON membros(remuneracao_total DESC)",
    "CREATE INDEX IF NOT EXISTS idx_membros_acima_teto ON membros(acima_teto DESC)",
    "CREATE INDEX IF NOT EXISTS idx_membros_mes ON membros(mes_referencia)",
    "CREATE INDEX IF NOT EXISTS idx_membros_ano ON membros(ano_referencia)",
    "CREATE INDEX IF NOT EXISTS idx_historico_membro ON historico_mensal(membro_id)",
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS membros_fts USING fts5(
        nome,
        cargo,
        orgao,
        content='membros',
        content_rowid='id',
        tokenize='unicode61 remove_diacritics 2'
    )
    """,
)


@dataclass(frozen=True)
class CompensationRecord:
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

    def as_params(self) -> dict[str, Any]:
        return asdict(self)


def build_compensation_record(
    *,
    nome: str,
    cargo: str,
    orgao: str,
    estado: str,
    remuneracao_base: float,
    verbas_indenizatorias: float,
    direitos_eventuais: float,
    direitos_pessoais: float,
    year: int,
    month: int,
    ceiling: float,
) -> CompensationRecord:
    result = compute_ceiling(
        remuneracao_base,
        verbas_indenizatorias,
        direitos_eventuais,
        direitos_pessoais,
        ceiling,
    )
    return CompensationRecord(
        nome=nome,
        cargo=cargo,
        orgao=orgao,
        estado=estado,
        remuneracao_base=remuneracao_base,
        verbas_indenizatorias=verbas_indenizatorias,
        direitos_eventuais=direitos_eventuais,
        direitos_pessoais=direitos_pessoais,
        remuneracao_total=result.total,
        acima_teto=result.acima_teto,
        percentual_acima_teto=result.percentual_acima_teto,
        mes_referencia=format_mes_referencia(year, month),
        ano_referencia=year,
    )


def format_mes_referencia(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def ensure_schema(session: Session) -> None:
    for statement in SCHEMA_STATEMENTS:
        session.execute(text(statement))


def insert_members(session: Session, records: Iterable[CompensationRecord]) -> int:
    """Insert member rows plus their history rows. The caller owns the transaction."""
    written = 0
    for record in records:
        result = session.execute(
            text(
                """
                INSERT INTO membros (
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
                ) VALUES (
                    :nome,
                    :cargo,
                    :orgao,
                    :estado,
                    :remuneracao_base,
                    :verbas_indenizatorias,
                    :direitos_eventuais,
                    :direitos_pessoais,
                    :remuneracao_total,
                    :acima_teto,
                    :percentual_acima_teto,
                    :mes_referencia,
                    :ano_referencia
                )
                """
            ),
            record.as_params(),
        )
        session.execute(
            text(
                """
                INSERT INTO historico_mensal (membro_id, mes, remuneracao_base, remuneracao_total)
                VALUES (:membro_id, :mes, :remuneracao_base, :remuneracao_total)
                """
            ),
            {
                "membro_id": result.lastrowid,
                "mes": record.mes_referencia,
                "remuneracao_base": record.remuneracao_base,
                "remuneracao_total": record.remuneracao_total,
            },
        )
        written += 1
    return written


def count_month(session: Session, mes_referencia: str) -> int:
    return int(
        session.execute(
            text("SELECT COUNT(*) FROM membros WHERE mes_referencia = :mes"),
            {"mes": mes_referencia},
        ).scalar_one()
    )


def month_has_data(session: Session, mes_referencia: str) -> bool:
    return count_month(session, mes_referencia) > 0


def delete_month(session: Session, mes_referencia: str) -> int:
    session.execute(
        text(
            """
            DELETE FROM historico_mensal
            WHERE membro_id IN (SELECT id FROM membros WHERE mes_referencia = :mes)
            """
        ),
        {"mes": mes_referencia},
    )
    result = session.execute(
        text("DELETE FROM membros WHERE mes_referencia = :mes"),
        {"mes": mes_referencia},
    )
    return int(result.rowcount or 0)


def rebuild_search_index(session: Session) -> None:
    session.execute(text("INSERT INTO membros_fts(membros_fts) VALUES ('rebuild')"))


def fresh_reset(session: Session) -> None:
    session.execute(text("DELETE FROM historico_mensal"))
    session.execute(text("DELETE FROM membros"))
    session.execute(text("DELETE FROM sync_log"))
    rebuild_search_index(session)
