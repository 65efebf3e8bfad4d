from __future__ import annotations

import re

"""Content normalization shared by every extraction path.

The same review text has to map to the same string across files so it can be
deduplicated and joined on: trim, drop one leading "用户评价文本" label (with
an optional ASCII or full-width colon), fold tab/CR/LF runs into a single
space, trim again.
"""

__all__ = [
    "REVIEW_PREFIX",
    "normalize_content",
]

REVIEW_PREFIX = "用户评价文本"

_PREFIX_RE = re.compile(rf"^{REVIEW_PREFIX}[:：]?\s*")
_LINE_BREAKS_RE = re.compile(r"[\t\n\r]+")


def normalize_content(raw: str) -> str:
    text = raw.strip()
    text = _PREFIX_RE.sub("", text, count=1)
    text = _LINE_BREAKS_RE.sub(" ", text)
    return text.strip()
