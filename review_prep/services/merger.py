from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from ..models.records import RiskAnalysisRow

"""Combine per-file risk rows into one dataset with dense global ids."""

__all__ = [
    "merge_risk_rows",
]


def merge_risk_rows(per_file_rows: Iterable[Sequence[RiskAnalysisRow]]) -> list[RiskAnalysisRow]:
    """Concatenate in file order and renumber ids 0..n-1.

    Per-file ids are row indices and collide across files, so they are
    discarded here before any caller uses ids for selection or dedup.
    """
    merged: list[RiskAnalysisRow] = []
    for rows in per_file_rows:
        for row in rows:
            merged.append(replace(row, id=len(merged)))
    return merged
