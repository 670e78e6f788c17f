"""Deterministic placeholder payroll used to seed an empty database.

The generated members are fictitious. The values follow the same shape as the
real disclosures (a base salary close to the ceiling plus indemnities, eventual
and personal rights) so that every read endpoint has something to show before
the first real sync.
"""

from __future__ import annotations

import random
import time
from typing import Any
from uuid import uuid4

from app.db import session_scope
from app.logging import get_logger
from app.settings import Settings, get_settings
from pipelines.common.ceiling import ceiling_for_year
from pipelines.common.compensation_store import (
    CompensationRecord,
    build_compensation_record,
    delete_month,
    ensure_schema,
    insert_members,
    rebuild_search_index,
)

JOB_NAME = "mock_payroll_seed"
SEED_YEAR = 2025
SEED_MONTH = 6
DEFAULT_MEMBER_COUNT = 200

FIRST_NAMES = (
    "José", "Maria", "João", "Ana", "Carlos", "Fernanda", "Paulo", "Juliana", "Marcos",
    "Luciana", "Roberto", "Patrícia", "Fernando", "Adriana", "Ricardo", "Cláudia", "Antônio",
    "Márcia", "Luiz", "Cristina", "Pedro", "Sandra", "Francisco", "Rosana", "Rafael", "Renata",
    "Marcelo", "Simone", "Eduardo", "Andréa", "Sérgio", "Vanessa", "Alexandre", "Tatiana",
    "Daniel", "Fabiana", "Gustavo", "Eliana", "Rogério", "Mônica", "André", "Helena", "Márcio",
    "Beatriz", "Rodrigo", "Carolina", "Leandro", "Daniela", "Thiago", "Camila",
)
LAST_NAMES = (
    "Silva", "Santos", "Oliveira", "Souza", "Lima", "Pereira", "Ferreira", "Costa", "Rodrigues",
    "Almeida", "Nascimento", "Araújo", "Carvalho", "Ribeiro", "Gomes", "Martins", "Barbosa",
    "Rocha", "Correia", "Dias", "Moreira", "Nunes", "Vieira", "Monteiro", "Cardoso", "Campos",
    "Teixeira", "Moura", "Freitas", "Mendes", "Ramos", "Pinto", "Barros", "Machado", "Melo",
    "Lopes", "Andrade", "Cavalcanti", "Miranda", "Azevedo", "Fonseca", "Guimarães",
)

ESTADO_ORGAOS: dict[str, tuple[str, ...]] = {
    "AC": ("TJ-AC", "MP-AC"), "AL": ("TJ-AL", "MP-AL"), "AM": ("TJ-AM", "MP-AM"),
    "AP": ("TJ-AP", "MP-AP"), "BA": ("TJ-BA", "MP-BA"), "CE": ("TJ-CE", "MP-CE"),
    "DF": ("TJ-DF", "MPDFT", "MPF", "MPT", "MPM"), "ES": ("TJ-ES", "MP-ES"),
    "GO": ("TJ-GO", "MP-GO"), "MA": ("TJ-MA", "MP-MA"), "MG": ("TJ-MG", "MP-MG"),
    "MS": ("TJ-MS", "MP-MS"), "MT": ("TJ-MT", "MP-MT"), "PA": ("TJ-PA", "MP-PA"),
    "PB": ("TJ-PB", "MP-PB"), "PE": ("TJ-PE", "MP-PE"), "PI": ("TJ-PI", "MP-PI"),
    "PR": ("TJ-PR", "MP-PR"), "RJ": ("TJ-RJ", "MP-RJ"), "RN": ("TJ-RN", "MP-RN"),
    "RO": ("TJ-RO", "MP-RO"), "RR": ("TJ-RR", "MP-RR"), "RS": ("TJ-RS", "MP-RS"),
    "SC": ("TJ-SC", "MP-SC"), "SE": ("TJ-SE", "MP-SE"), "SP": ("TJ-SP", "MP-SP"),
    "TO": ("TJ-TO", "MP-TO"),
}

# Larger states get proportionally more members.
ESTADO_WEIGHTS: dict[str, int] = {
    "SP": 30, "RJ": 22, "MG": 18, "DF": 15, "RS": 12, "PR": 10, "BA": 9, "PE": 8, "CE": 7,
    "PA": 6, "GO": 6, "SC": 6, "MA": 5, "ES": 5, "AM": 4, "MT": 4, "MS": 4, "PB": 4, "RN": 4,
    "PI": 3, "AL": 3, "SE": 3, "TO": 3, "RO": 3, "AP": 2, "RR": 2, "AC": 2,
}

# (upper bound of the tier draw, base range, indemnities, eventual rights, personal rights)
PAY_TIERS: tuple[tuple[float, tuple[int, int], tuple[int, int], tuple[int, int], tuple[int, int]], ...] = (
    (0.05, (33000, 39293), (60000, 140000), (20000, 60000), (15000, 35000)),
    (0.20, (33000, 39293), (35000, 70000), (10000, 30000), (8000, 22000)),
    (0.55, (30000, 39293), (15000, 40000), (3000, 15000), (5000, 15000)),
    (0.80, (30000, 39293), (5000, 15000), (1000, 5000), (2000, 8000)),
    (1.00, (25000, 35000), (0, 8000), (0, 3000), (0, 5000)),
)

logger = get_logger(JOB_NAME)


def _cargo_for(orgao: str, rng: random.Random) -> str:
    if orgao.startswith("MP"):
        return "Promotor(a)" if rng.random() > 0.5 else "Procurador(a)"
    if rng.random() > 0.4:
        return "Desembargador(a)"
    return "Juiz(a)"


def _unique_name(rng: random.Random, used: set[str]) -> str:
    while True:
        first = rng.choice(FIRST_NAMES)
        middle = rng.choice(LAST_NAMES)
        last = rng.choice(LAST_NAMES)
        if middle == last:
            nome = f"{first} {middle} de {rng.choice(LAST_NAMES)}"
        else:
            nome = f"{first} {middle} {last}"
        if nome not in used:
            used.add(nome)
            return nome


def generate_placeholder_members(
    *,
    ceiling: float,
    count: int = DEFAULT_MEMBER_COUNT,
    seed: int = 42,
    year: int = SEED_YEAR,
    month: int = SEED_MONTH,
) -> list[CompensationRecord]:
    rng = random.Random(seed)
    weighted_estados = [estado for estado, weight in ESTADO_WEIGHTS.items() for _ in range(weight)]
    used_names: set[str] = set()

    records: list[CompensationRecord] = []
    for _ in range(count):
        nome = _unique_name(rng, used_names)
        estado = rng.choice(weighted_estados)
        orgao = rng.choice(ESTADO_ORGAOS[estado])
        if orgao in {"MPF", "MPT", "MPM", "MPDFT"}:
            estado = "DF"

        draw = rng.random()
        tier = next(tier for tier in PAY_TIERS if draw < tier[0])
        _, base_range, indenizatorias_range, eventuais_range, pessoais_range = tier
        records.append(
            build_compensation_record(
                nome=nome,
                cargo=_cargo_for(orgao, rng),
                orgao=orgao,
                estado=estado,
                remuneracao_base=float(rng.randint(*base_range)),
                verbas_indenizatorias=float(rng.randint(*indenizatorias_range)),
                direitos_eventuais=float(rng.randint(*eventuais_range)),
                direitos_pessoais=float(rng.randint(*pessoais_range)),
                year=year,
                month=month,
                ceiling=ceiling,
            )
        )

    records.sort(key=lambda record: record.remuneracao_total, reverse=True)
    return records


def seed_placeholder_data(
    *,
    settings: Settings | None = None,
    count: int = DEFAULT_MEMBER_COUNT,
    seed: int = 42,
) -> dict[str, Any]:
    """Replace the placeholder month with freshly generated members."""
    settings = settings or get_settings()
    run_id = str(uuid4())
    started_at = time.perf_counter()

    ceiling = ceiling_for_year(SEED_YEAR, settings.teto_by_year)
    records = generate_placeholder_members(ceiling=ceiling, count=count, seed=seed)
    mes_referencia = records[0].mes_referencia if records else f"{SEED_YEAR}-{SEED_MONTH:02d}"

    with session_scope(settings) as session:
        ensure_schema(session)
        delete_month(session, mes_referencia)
        written = insert_members(session, records)
        rebuild_search_index(session)

    elapsed = time.perf_counter() - started_at
    logger.info(
        "Placeholder payroll seeded.",
        run_id=run_id,
        mes_referencia=mes_referencia,
        rows_written=written,
        duration_seconds=round(elapsed, 2),
    )
    return {
        "job": JOB_NAME,
        "status": "success",
        "run_id": run_id,
        "duration_seconds": round(elapsed, 2),
        "rows_extracted": len(records),
        "rows_written": written,
        "warnings": [],
        "errors": [],
    }
