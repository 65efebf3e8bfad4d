from __future__ import annotations

from dataclasses import dataclass, field

from .records import ProcessedRow, RiskAnalysisRow

"""Processing result models for the review export pipeline.

Per-file results keep failures contained: a file that could not be decoded,
parsed or matched carries an `error` string and contributes no rows, while
the rest of the batch proceeds.
"""

__all__ = [
    "ProcessingStats",
    "ProcessedFileResult",
    "RiskFileResult",
    "RiskBatchResult",
    "JoinResult",
    "BatchSummary",
]


@dataclass(frozen=True)
class ProcessingStats:
    """Per-file counters of the content-formatting path.

    Invariant: valid_rows + skipped_rows == total_rows.
    """
    total_rows: int  # パース済みデータ行数
    valid_rows: int  # 出力行数
    skipped_rows: int  # 空 or ファイル内重複


@dataclass(frozen=True)
class ProcessedFileResult:
    """Outcome of formatting one uploaded file.

    `id` is session-local and stays stable until the entry is removed or the
    session is reset.
    """
    id: int
    original_name: str
    rows: list[ProcessedRow] = field(default_factory=list)
    stats: ProcessingStats | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RiskFileResult:
    """Outcome of extracting one risk export (ids are still file-local)."""
    original_name: str
    rows: list[RiskAnalysisRow] = field(default_factory=list)
    error: str | None = None
    encoding: str | None = None  # 実際に採用したデコード

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RiskBatchResult:
    """Merged risk dataset plus what happened to each file.

    `message` is set (and `rows` empty) when no file yielded a usable row.
    """
    rows: list[RiskAnalysisRow]
    files: list[RiskFileResult]
    message: str | None = None

    @property
    def failed_files(self) -> list[RiskFileResult]:
        return [f for f in self.files if not f.ok]


@dataclass(frozen=True)
class JoinResult:
    rows: list[RiskAnalysisRow]
    matched: int  # nid が付与された行数
    linked: bool  # matched > 0


@dataclass(frozen=True)
class BatchSummary:
    """Aggregated metrics for the SUMMARY output line."""
    success_files: int
    failed_files: int
    total_rows: int
    skipped_rows: int
    elapsed_seconds: float

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
