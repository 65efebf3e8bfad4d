from __future__ import annotations

import pytest

from review_prep.models.records import RiskAnalysisRow
from review_prep.services.merger import merge_risk_rows


def _rows(prefix: str, n: int) -> list[RiskAnalysisRow]:
    return [RiskAnalysisRow(id=i, content=f"{prefix}{i}", risk_score=0.1, risk_type="N/A") for i in range(n)]


@pytest.mark.parametrize("counts", [[], [0], [3], [2, 0, 5], [1, 1, 1, 1]])
def test_merge_ids_dense(counts):
    per_file = [_rows(f"f{k}-", n) for k, n in enumerate(counts)]
    merged = merge_risk_rows(per_file)
    assert len(merged) == sum(counts)
    assert sorted(r.id for r in merged) == list(range(sum(counts)))


def test_merge_preserves_file_and_row_order():
    merged = merge_risk_rows([_rows("a", 2), _rows("b", 2)])
    assert [r.content for r in merged] == ["a0", "a1", "b0", "b1"]
    assert [r.id for r in merged] == [0, 1, 2, 3]


def test_merge_does_not_mutate_inputs():
    first = _rows("a", 2)
    second = _rows("b", 2)
    merge_risk_rows([first, second])
    assert [r.id for r in second] == [0, 1]
