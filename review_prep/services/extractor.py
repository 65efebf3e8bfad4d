from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ..models.processing_result import ProcessingStats
from ..models.records import ProcessedRow, RawTable, RiskAnalysisRow
from ..table.columns import (
    RISK_TYPE_MISSING,
    is_content_column,
    is_score_column,
    resolve_content_column,
    resolve_risk_columns,
)
from ..table.reader import resolve_table
from .normalizer import normalize_content

"""Row extraction for the two upload flows.

- extract_processed(): content formatting flow. Emits one ProcessedRow per
  distinct normalized content within the file; empty and duplicate rows are
  counted as skipped.
- extract_risk(): risk analysis flow. Emits one RiskAnalysisRow per row with
  a parsable score. No deduplication here; the export step dedups across the
  merged dataset.

The two flows treat content that normalizes to "" differently: the formatting
flow skips the row, the risk flow keeps the raw cell text instead.
"""

__all__ = [
    "DEFAULT_STRATEGY",
    "ExtractionResult",
    "RiskExtraction",
    "extract_processed",
    "extract_risk",
    "parse_score",
    "process_buffer",
    "process_risk_buffer",
]

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = "service_safe_cate_v2"


@dataclass(frozen=True)
class ExtractionResult:
    rows: list[ProcessedRow]
    stats: ProcessingStats
    encoding: str | None = None


@dataclass(frozen=True)
class RiskExtraction:
    rows: list[RiskAnalysisRow]
    encoding: str | None = None


def extract_processed(table: RawTable, strategy: str = DEFAULT_STRATEGY) -> ExtractionResult:
    """Build strategy-tagged rows from the content column of `table`.

    Raises:
        ColumnNotFoundError: if neither '内容' nor 'content' is a header
    """
    columns = resolve_content_column(table.headers)
    rows: list[ProcessedRow] = []
    seen: set[str] = set()
    for record in table.records:
        value = record.get(columns.content)
        if not value:
            continue
        content = normalize_content(value)
        # 正規化で空になった行・ファイル内重複はスキップ扱い
        if not content or content in seen:
            continue
        seen.add(content)
        rows.append(ProcessedRow(strategy=strategy, content=content))

    total = len(table.records)
    stats = ProcessingStats(total_rows=total, valid_rows=len(rows), skipped_rows=total - len(rows))
    return ExtractionResult(rows=rows, stats=stats)


def parse_score(raw: str) -> float | None:
    """Parse a risk score cell; None unless it is a finite number >= 0."""
    raw = raw.strip()
    # float() は "1_0" を 10.0 と読むため桁区切りは拒否
    if "_" in raw:
        return None
    try:
        score = float(raw)
    except ValueError:
        return None
    if not math.isfinite(score) or score < 0:
        return None
    return score


def extract_risk(table: RawTable) -> list[RiskAnalysisRow]:
    """Build RiskAnalysisRow values from the scored rows of `table`.

    Row ids are the row's index within this file; rows with a blank or
    unparsable score are dropped without being counted.

    Raises:
        ColumnNotFoundError: if no header looks like a risk score column
    """
    columns = resolve_risk_columns(table.headers)
    rows: list[RiskAnalysisRow] = []
    for index, record in enumerate(table.records):
        raw_score = record.get(columns.score)
        if not raw_score:
            continue
        score = parse_score(raw_score)
        if score is None:
            continue

        raw_content = record.get(columns.content) or ""
        risk_type = record.get(columns.risk_type)
        nid = (record.get(columns.nid) or "").strip()
        rows.append(
            RiskAnalysisRow(
                id=index,
                content=normalize_content(raw_content) or raw_content,
                risk_score=score,
                risk_type=RISK_TYPE_MISSING if risk_type is None else risk_type,
                nid=nid or None,
                original_row=record.as_dict(),
            )
        )
    logger.debug("risk rows kept=%d of %d", len(rows), len(table.records))
    return rows


def process_buffer(buffer: bytes, strategy: str = DEFAULT_STRATEGY) -> ExtractionResult:
    """Decode, parse and extract one upload for the formatting flow."""
    resolved = resolve_table(buffer, is_content_column)
    result = extract_processed(resolved.table, strategy)
    return ExtractionResult(rows=result.rows, stats=result.stats, encoding=resolved.encoding)


def process_risk_buffer(buffer: bytes) -> RiskExtraction:
    """Decode, parse and extract one upload for the risk flow."""
    resolved = resolve_table(buffer, is_score_column)
    return RiskExtraction(rows=extract_risk(resolved.table), encoding=resolved.encoding)
