from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from ..models.processing_result import JoinResult
from ..models.records import RiskAnalysisRow
from ..table.columns import (
    CONTENT_ALIASES,
    NID_ALIASES,
    NID_FRAGMENTS,
    ColumnNotFoundError,
    find_content_column,
    find_nid_column,
    is_nid_column,
)
from ..table.reader import (
    FALLBACK_ENCODING,
    PRIMARY_ENCODING,
    ResolvedTable,
    decode_buffer,
    parse_table,
    resolve_table,
)
from .normalizer import normalize_content

"""NID source mapping: normalized content -> external business id.

A mapping file is an independent export carrying both a content column and an
NID column. Rows are matched to the risk dataset by exact equality of the
normalized content; there is no fuzzy matching.
"""

__all__ = [
    "build_mapping",
    "join_mapping",
]

logger = logging.getLogger(__name__)


def build_mapping(buffer: bytes) -> dict[str, str]:
    """Parse a mapping upload into {normalized content: NID}.

    Rows with blank content or blank NID are ignored. Duplicate contents keep
    the last NID seen.

    The NID header is ASCII, so it survives a wrong legacy decode of a UTF-8
    file. When the legacy decode exposes NID but no content column, the
    buffer is re-read as UTF-8 before the content column is reported missing.

    Raises:
        ColumnNotFoundError: if the NID column or the content column is missing
    """
    resolved = resolve_table(buffer, is_nid_column)
    if resolved.encoding == PRIMARY_ENCODING and find_content_column(
        resolved.table.headers, allow_partial=True
    ) is None:
        logger.warning("%s mapping has no content column; retrying as UTF-8", PRIMARY_ENCODING)
        resolved = ResolvedTable(
            table=parse_table(decode_buffer(buffer, FALLBACK_ENCODING)),
            encoding=FALLBACK_ENCODING,
        )
    headers = resolved.table.headers
    nid_column = find_nid_column(headers)
    if nid_column is None:
        raise ColumnNotFoundError((*NID_ALIASES, *NID_FRAGMENTS), headers)
    content_column = find_content_column(headers, allow_partial=True)
    if content_column is None:
        raise ColumnNotFoundError(CONTENT_ALIASES, headers)

    mapping: dict[str, str] = {}
    for record in resolved.table.records:
        content = normalize_content(record.get(content_column) or "")
        nid = (record.get(nid_column) or "").strip()
        if not content or not nid:
            continue
        mapping[content] = nid
    logger.info("source mapping loaded entries=%d encoding=%s", len(mapping), resolved.encoding)
    return mapping


def join_mapping(rows: Sequence[RiskAnalysisRow], mapping: dict[str, str]) -> JoinResult:
    """Left-join `mapping` onto `rows` by content.

    Matched rows are copied with `nid` set; unmatched rows are passed through
    unchanged. `linked` is False when nothing matched.
    """
    joined: list[RiskAnalysisRow] = []
    matched = 0
    for row in rows:
        nid = mapping.get(row.content)
        if nid is None:
            joined.append(row)
            continue
        joined.append(replace(row, nid=nid))
        matched += 1
    return JoinResult(rows=joined, matched=matched, linked=matched > 0)
