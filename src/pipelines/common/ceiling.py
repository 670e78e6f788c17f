from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class CeilingResult:
    total: float
    acima_teto: float
    percentual_acima_teto: float


def compute_ceiling(
    base: float,
    indenizatorias: float,
    eventuais: float,
    pessoais: float,
    ceiling: float,
) -> CeilingResult:
    if ceiling <= 0:
        raise ValueError(f"Ceiling must be positive, got {ceiling}.")
    total = base + indenizatorias + eventuais + pessoais
    acima = max(0.0, total - ceiling)
    percentual = (acima / ceiling) * 100 if acima > 0 else 0.0
    return CeilingResult(total=total, acima_teto=acima, percentual_acima_teto=percentual)


def ceiling_for_year(year: int, table: Mapping[int, float]) -> float:
    """Ceiling in force for ``year``: the latest entry at or before it, else the earliest known."""
    if not table:
        raise ValueError("Ceiling table is empty.")
    if year in table:
        return float(table[year])
    earlier = [known for known in table if known <= year]
    if earlier:
        return float(table[max(earlier)])
    return float(table[min(table)])
