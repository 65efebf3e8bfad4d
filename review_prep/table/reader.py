from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass

import pandas as pd

from ..models.records import RawRecord, RawTable

"""Delimited-text reader with a two-step encoding fallback.

Uploads are usually GBK exports from spreadsheet tools, but UTF-8 files show
up too. Decoding never raises (undecodable bytes become U+FFFD), so the only
signal that the wrong encoding was used is that the caller's column cannot be
found in the header. resolve_table() therefore decodes with the legacy
encoding first and re-decodes the same buffer as UTF-8 exactly once when the
caller's predicate matches no header.

Parsing follows the usual spreadsheet-export conventions: first line is the
header, blank lines are skipped, the delimiter is sniffed from the header line
(comma when undecidable), rows with surplus fields are truncated to the
header width instead of failing the whole file, and cells missing from short
rows read as None.
"""

__all__ = [
    "PRIMARY_ENCODING",
    "FALLBACK_ENCODING",
    "TableError",
    "TableParseError",
    "DecodeError",
    "ResolvedTable",
    "decode_buffer",
    "detect_delimiter",
    "parse_table",
    "resolve_table",
]

logger = logging.getLogger(__name__)

# gb18030 は GBK の上位互換 (ブラウザの 'gbk' デコーダと同等)
PRIMARY_ENCODING = "gb18030"
# utf-8-sig: 先頭 BOM を除去
FALLBACK_ENCODING = "utf-8-sig"
CANDIDATE_DELIMITERS = ",\t;|"


class TableError(Exception):
    """Base class for failures reading one uploaded file."""


class TableParseError(TableError):
    """Raised when the decoded text cannot be parsed as delimited text."""


class DecodeError(TableError):
    """Raised when the raw buffer cannot be obtained or decoded."""


@dataclass(frozen=True)
class ResolvedTable:
    table: RawTable
    encoding: str  # 採用したエンコーディング


def decode_buffer(buffer: bytes, encoding: str) -> str:
    try:
        return buffer.decode(encoding, errors="replace")
    except LookupError as e:
        raise DecodeError(f"unknown encoding: {encoding}") from e


def detect_delimiter(text: str) -> str:
    """Sniff the delimiter from the header line, defaulting to comma."""
    header_line = next((line for line in text.splitlines() if line.strip()), "")
    if not header_line:
        return ","
    try:
        return csv.Sniffer().sniff(header_line, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


def parse_table(text: str) -> RawTable:
    """Parse decoded text into a RawTable (header row + string-valued rows).

    Empty input yields a table with no headers, which callers report as a
    missing column rather than a parse failure.
    """
    if not text.strip():
        return RawTable(headers=[], records=[])

    delimiter = detect_delimiter(text)
    read_opts = dict(
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        index_col=False,
    )
    try:
        header_frame = pd.read_csv(io.StringIO(text), nrows=0, **read_opts)
        width = len(header_frame.columns)
        # 列数超過行はヘッダ幅に切り詰める (ファイル全体を失敗させない)
        df = pd.read_csv(io.StringIO(text), usecols=range(width), **read_opts)
    except pd.errors.EmptyDataError:
        return RawTable(headers=[], records=[])
    except (pd.errors.ParserError, csv.Error, ValueError) as e:
        raise TableParseError(f"failed to parse delimited text: {e}") from e

    headers = [str(c) for c in df.columns]
    records: list[RawRecord] = []
    for raw in df.itertuples(index=False, name=None):
        values: dict[str, str | None] = {}
        for col, val in zip(headers, raw, strict=False):
            values[col] = None if pd.isna(val) else str(val)
        records.append(RawRecord(values=values))
    return RawTable(headers=headers, records=records)


def _parse_attempt(buffer: bytes, encoding: str) -> RawTable | None:
    try:
        return parse_table(decode_buffer(buffer, encoding))
    except TableParseError as e:
        logger.debug("parse with %s failed: %s", encoding, e)
        return None


def resolve_table(buffer: bytes, predicate: Callable[[str], bool]) -> ResolvedTable:
    """Decode and parse `buffer`, falling back to UTF-8 once.

    Steps:
    1. Decode with PRIMARY_ENCODING and parse
    2. If some header satisfies `predicate`, use that result
    3. Otherwise decode the same buffer with FALLBACK_ENCODING, parse, and use
       that result whether or not the predicate matches; the caller reports
       the missing column against these headers

    A parse failure on the first attempt counts as "no match"; on the second
    attempt it propagates as TableParseError.
    """
    table = _parse_attempt(buffer, PRIMARY_ENCODING)
    if table is not None and any(predicate(h) for h in table.headers):
        return ResolvedTable(table=table, encoding=PRIMARY_ENCODING)

    logger.warning(
        "%s decoding did not expose the expected column; retrying as UTF-8",
        PRIMARY_ENCODING,
    )
    table = parse_table(decode_buffer(buffer, FALLBACK_ENCODING))
    return ResolvedTable(table=table, encoding=FALLBACK_ENCODING)
