from __future__ import annotations

import pytest

from app.payroll_aggregations import compute_kpis, stats_by_estado, stats_by_orgao


def _row(orgao: str, estado: str, total: float, acima: float) -> dict[str, object]:
    return {"orgao": orgao, "estado": estado, "remuneracao_total": total, "acima_teto": acima}


ROWS = [
    _row("TJ-SP", "SP", 60000.0, 13633.81),
    _row("TJ-SP", "SP", 40000.0, 0.0),
    _row("MP-SP", "SP", 50000.0, 3633.81),
    _row("TJ-RJ", "RJ", 90000.0, 43633.81),
    _row("MPF", "RJ", 70000.0, 23633.81),
    _row("MPF", "DF", 30000.0, 0.0),
]


def test_stats_by_estado_groups_and_sorts_by_excess() -> None:
    stats = stats_by_estado(ROWS)

    assert [item.estado for item in stats] == ["RJ", "SP", "DF"]
    sp = stats[1]
    assert sp.total_membros == 3
    assert sp.membros_acima_teto == 2
    assert sp.total_acima_teto == pytest.approx(17267.62)
    assert sp.media_remuneracao == pytest.approx(50000.0)
    assert sp.maior_remuneracao == 60000.0
    assert sp.percentual_acima_teto == pytest.approx(200 / 3)
    assert stats[2].as_dict()["total_acima_teto"] == 0.0


def test_stats_by_orgao_labels_federal_branches() -> None:
    stats = {item.orgao: item for item in stats_by_orgao(ROWS)}

    assert stats["MPF"].estado == "Federal"
    assert stats["MPF"].total_membros == 2
    assert stats["MPF"].media_acima_teto == pytest.approx(23633.81)
    assert stats["TJ-SP"].estado == "SP"
    assert stats["TJ-SP"].percentual_acima_teto == pytest.approx(50.0)
    assert list(stats)[0] == "TJ-RJ"


def test_compute_kpis() -> None:
    kpis = compute_kpis(ROWS)

    assert kpis["total_membros"] == 6
    assert kpis["num_acima_teto"] == 4
    assert kpis["total_acima_teto"] == pytest.approx(84535.24)
    assert kpis["total_acima_teto_anualizado"] == pytest.approx(84535.24 * 12)
    assert kpis["media_acima_teto"] == pytest.approx(84535.24 / 4)
    assert kpis["maior_remuneracao"] == 90000.0
    assert kpis["percentual_acima_teto"] == pytest.approx(400 / 6)


def test_compute_kpis_on_empty_input() -> None:
    kpis = compute_kpis([])

    assert kpis["total_membros"] == 0
    assert kpis["media_acima_teto"] == 0.0
    assert kpis["maior_remuneracao"] == 0.0
    assert kpis["percentual_acima_teto"] == 0.0
