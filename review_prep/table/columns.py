from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .reader import TableError

"""Header matching for the logical columns of an uploaded export.

Exports come from several tools with slightly different header spellings, so
each logical column is resolved with ordered rules (first match wins):

1. EXACT     - trimmed header equals one of the aliases, in alias priority order
2. CANONICAL - trimmed header equals the fully-qualified operator column name
3. CONTAINS  - trimmed header contains one of the fragments, in fragment order

Columns are resolved once per file (see ColumnResolution) and the physical
header name is reused for every row.
"""

__all__ = [
    "MatchRule",
    "ColumnMatch",
    "ColumnNotFoundError",
    "ColumnResolution",
    "CONTENT_ALIASES",
    "SCORE_COLUMN",
    "match_column",
    "find_column",
    "find_content_column",
    "find_score_column",
    "find_risk_type_column",
    "find_nid_column",
    "is_content_column",
    "is_score_column",
    "is_nid_column",
    "resolve_content_column",
    "resolve_risk_columns",
]

CONTENT_ALIASES = ("内容", "content")
# ラベル用の正式名称 (スコア列は部分一致のみで探索する)
SCORE_COLUMN = "文心安全算子V2-风险得分"
SCORE_FRAGMENTS = ("风险得分", "Risk Score", "文心安全算子")
RISK_TYPE_COLUMN = "文心安全算子V2-一级风险类型"
RISK_TYPE_FRAGMENTS = ("一级风险类型",)
NID_ALIASES = ("NID",)
NID_FRAGMENTS = ("业务ID",)

RISK_TYPE_MISSING = "N/A"


class MatchRule(Enum):
    EXACT = "exact"
    CANONICAL = "canonical"
    CONTAINS = "contains"


@dataclass(frozen=True)
class ColumnMatch:
    header: str  # 物理ヘッダ名 (トリム前)
    rule: MatchRule


class ColumnNotFoundError(TableError):
    """Raised when a required logical column is missing from the header.

    The message lists the accepted column names and every header that was
    actually found, so users can tell a wrong export from a wrong encoding.
    """

    def __init__(self, accepted: Sequence[str], found: Sequence[str]) -> None:
        self.accepted = list(accepted)
        self.found = list(found)
        names = " or ".join(f"'{a}'" for a in self.accepted)
        available = ", ".join(f"'{f}'" for f in self.found) or "(none)"
        super().__init__(f"Could not find the column named {names}. Found columns: {available}")


def match_column(
    headers: Sequence[str],
    *,
    exact: Sequence[str] = (),
    canonical: str | None = None,
    fragments: Sequence[str] = (),
    ignore_case: bool = False,
) -> ColumnMatch | None:
    def key(text: str) -> str:
        text = text.strip()
        return text.upper() if ignore_case else text

    keyed = [(key(h), h) for h in headers]
    for alias in exact:
        alias_key = key(alias)
        for k, header in keyed:
            if k == alias_key:
                return ColumnMatch(header, MatchRule.EXACT)
    if canonical is not None:
        canonical_key = key(canonical)
        for k, header in keyed:
            if k == canonical_key:
                return ColumnMatch(header, MatchRule.CANONICAL)
    for fragment in fragments:
        fragment_key = key(fragment)
        for k, header in keyed:
            if fragment_key in k:
                return ColumnMatch(header, MatchRule.CONTAINS)
    return None


def find_column(headers: Sequence[str], **rules) -> str | None:
    match = match_column(headers, **rules)
    return match.header if match else None


def find_content_column(headers: Sequence[str], *, allow_partial: bool = False) -> str | None:
    """Content column: exact alias, plus substring match when allow_partial."""
    return find_column(
        headers,
        exact=CONTENT_ALIASES,
        fragments=CONTENT_ALIASES if allow_partial else (),
    )


def find_score_column(headers: Sequence[str]) -> str | None:
    return find_column(headers, fragments=SCORE_FRAGMENTS)


def find_risk_type_column(headers: Sequence[str]) -> str | None:
    return find_column(headers, canonical=RISK_TYPE_COLUMN, fragments=RISK_TYPE_FRAGMENTS)


def find_nid_column(headers: Sequence[str]) -> str | None:
    return find_column(headers, exact=NID_ALIASES, fragments=NID_FRAGMENTS, ignore_case=True)


# resolve_table() 用の述語
def is_content_column(header: str) -> bool:
    return find_content_column([header]) is not None


def is_score_column(header: str) -> bool:
    return find_score_column([header]) is not None


def is_nid_column(header: str) -> bool:
    return find_nid_column([header]) is not None


@dataclass(frozen=True)
class ColumnResolution:
    """Physical header names of one file's logical columns."""
    content: str | None
    score: str | None = None
    risk_type: str | None = None
    nid: str | None = None


def resolve_content_column(headers: Sequence[str]) -> ColumnResolution:
    content = find_content_column(headers)
    if content is None:
        raise ColumnNotFoundError(CONTENT_ALIASES, headers)
    return ColumnResolution(content=content)


def resolve_risk_columns(headers: Sequence[str]) -> ColumnResolution:
    """Resolve score (required), content, risk type and NID columns."""
    score = find_score_column(headers)
    if score is None:
        raise ColumnNotFoundError((SCORE_COLUMN, *SCORE_FRAGMENTS), headers)
    return ColumnResolution(
        content=find_content_column(headers, allow_partial=True),
        score=score,
        risk_type=find_risk_type_column(headers),
        nid=find_nid_column(headers),
    )
