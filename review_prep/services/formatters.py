from __future__ import annotations

import io
import re
import zipfile
from collections.abc import Iterable, Sequence

import numpy as np

from ..models.processing_result import ProcessedFileResult
from ..models.records import ProcessedRow, RiskAnalysisRow

"""Output formatters for downloadable artifacts.

- Processed TXT: `strategy<TAB>content` lines, UTF-8 without BOM
- Batch ZIP: one processed TXT per successful file
- Risk CSV: `nid,risk_score,risk_type,content`, UTF-8 with BOM so spreadsheet
  tools pick the right encoding
"""

__all__ = [
    "PROCESSED_HEADER",
    "RISK_CSV_HEADER",
    "BATCH_ZIP_NAME",
    "RISK_EXPORT_NAME",
    "processed_file_name",
    "format_processed_text",
    "encode_processed_text",
    "format_score",
    "format_risk_csv",
    "build_zip",
]

PROCESSED_HEADER = "strategy\tcontent"
RISK_CSV_HEADER = "nid,risk_score,risk_type,content"
BATCH_ZIP_NAME = "batch_processed_files.zip"
RISK_EXPORT_NAME = "risk_analysis_export.csv"
UTF8_BOM = "\ufeff"

_UNSAFE_WS_RE = re.compile(r"[\t\n\r]+")
_SOURCE_SUFFIX_RE = re.compile(r"\.(csv|txt)$", re.IGNORECASE)


def processed_file_name(original_name: str) -> str:
    """'reviews.CSV' -> 'reviews_processed.txt'."""
    return f"{_SOURCE_SUFFIX_RE.sub('', original_name)}_processed.txt"


def format_processed_text(rows: Iterable[ProcessedRow]) -> str:
    lines = [PROCESSED_HEADER]
    for row in rows:
        # 正規化済みでも書き出し直前に再度タブ/改行を潰す
        lines.append(f"{_UNSAFE_WS_RE.sub(' ', row.strategy)}\t{_UNSAFE_WS_RE.sub(' ', row.content)}")
    return "\n".join(lines)


def encode_processed_text(rows: Iterable[ProcessedRow]) -> bytes:
    return format_processed_text(rows).encode("utf-8")


def format_score(score: float) -> str:
    """Shortest positional decimal that parses back to the same float (no exponent)."""
    return np.format_float_positional(score, unique=True, trim="-")


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _csv_field(value: str) -> str:
    if any(ch in value for ch in (",", '"', "\n", "\r")):
        return _quote(value)
    return value


def format_risk_csv(rows: Iterable[RiskAnalysisRow], *, dedupe: bool = True) -> bytes:
    """Serialize risk rows as BOM-prefixed UTF-8 CSV.

    The content field is always quoted. With `dedupe`, only the first row of
    each distinct content is written.
    """
    lines = [RISK_CSV_HEADER]
    seen: set[str] = set()
    for row in rows:
        if dedupe:
            if row.content in seen:
                continue
            seen.add(row.content)
        lines.append(
            ",".join(
                [
                    _csv_field(row.nid or ""),
                    format_score(row.risk_score),
                    _csv_field(row.risk_type),
                    _quote(row.content),
                ]
            )
        )
    return (UTF8_BOM + "\n".join(lines) + "\n").encode("utf-8")


def build_zip(results: Sequence[ProcessedFileResult]) -> bytes:
    """Bundle processed TXT outputs, skipping failed or empty results.

    Entries are keyed by output name; a later file with the same base name
    replaces an earlier one.
    """
    entries: dict[str, bytes] = {}
    for result in results:
        if result.error or not result.rows:
            continue
        entries[processed_file_name(result.original_name)] = encode_processed_text(result.rows)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()
