from __future__ import annotations

from dataclasses import dataclass, field

"""Row-level records for the review export pipeline.

RawTable / RawRecord are the parsed form of one uploaded file. ProcessedRow and
RiskAnalysisRow are what the extractor emits; both are immutable once created
(the NID joiner builds new RiskAnalysisRow values instead of mutating).
"""

__all__ = [
    "RawRecord",
    "RawTable",
    "ProcessedRow",
    "RiskAnalysisRow",
]


@dataclass(frozen=True)
class RawRecord:
    """One parsed data row: header name -> raw cell text.

    Cells missing from a short row read as None.
    """
    values: dict[str, str | None]

    def get(self, column: str | None) -> str | None:
        if column is None:
            return None
        return self.values.get(column)

    def as_dict(self) -> dict[str, str | None]:
        return dict(self.values)


@dataclass(frozen=True)
class RawTable:
    """Header row plus data rows of one delimited-text file."""
    headers: list[str]
    records: list[RawRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class ProcessedRow:
    strategy: str  # 固定タグ (service_safe_cate_v2)
    content: str  # normalize_content 済み


@dataclass(frozen=True)
class RiskAnalysisRow:
    """One scored record from a risk export.

    `id` is the row index within its file until the merger renumbers the
    combined dataset densely (0..n-1). `risk_score` is always finite and >= 0.
    """
    id: int
    content: str
    risk_score: float
    risk_type: str
    nid: str | None = None
    original_row: dict[str, str | None] = field(default_factory=dict)
