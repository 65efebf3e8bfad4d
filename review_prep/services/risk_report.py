from __future__ import annotations

from collections.abc import Sequence

from ..models.records import RiskAnalysisRow

"""Threshold filtering and the plain-text violation report.

The report is meant to be pasted into chat/issue trackers as-is, hence the
fixed Chinese layout:

    样本数量：{total}个
    违规样本：{violations}个（{pct}%）
    （去重后{unique}个）
    违规case
    1.{risk_type}：{example}、{example}...
"""

__all__ = [
    "DEFAULT_THRESHOLD",
    "DEFAULT_EXAMPLE_LIMIT",
    "clamp_threshold",
    "filter_by_threshold",
    "score_band",
    "count_bands",
    "render_risk_report",
]

DEFAULT_THRESHOLD = 0.0001
DEFAULT_EXAMPLE_LIMIT = 5


def clamp_threshold(threshold: float) -> float:
    return max(0.0, threshold)


def filter_by_threshold(rows: Sequence[RiskAnalysisRow], threshold: float) -> list[RiskAnalysisRow]:
    """Rows scoring >= threshold, highest score first (ties keep dataset order)."""
    threshold = clamp_threshold(threshold)
    kept = [row for row in rows if row.risk_score >= threshold]
    return sorted(kept, key=lambda row: row.risk_score, reverse=True)


def score_band(score: float) -> str:
    if score > 0.5:
        return "high"
    if score > 0.001:
        return "medium"
    return "low"


def count_bands(rows: Sequence[RiskAnalysisRow]) -> dict[str, int]:
    """Rows per score band, always keyed high/medium/low in that order."""
    counts = dict.fromkeys(("high", "medium", "low"), 0)
    for row in rows:
        counts[score_band(row.risk_score)] += 1
    return counts


def render_risk_report(
    all_rows: Sequence[RiskAnalysisRow],
    filtered_rows: Sequence[RiskAnalysisRow],
    example_limit: int = DEFAULT_EXAMPLE_LIMIT,
) -> str:
    """Render the violation summary; empty string when nothing passed the filter."""
    if not filtered_rows:
        return ""

    total = len(all_rows)
    violations = len(filtered_rows)
    percent = f"{violations / total * 100:.2f}" if total > 0 else "0.00"
    unique_count = len({row.content for row in filtered_rows})

    # risk_type -> 内容 (初出順, 重複なし)
    grouped: dict[str, dict[str, None]] = {}
    for row in filtered_rows:
        grouped.setdefault(row.risk_type, {})[row.content] = None

    case_lines = []
    for index, (risk_type, contents) in enumerate(grouped.items(), start=1):
        examples = "、".join(list(contents)[:example_limit])
        suffix = "..." if len(contents) > example_limit else ""
        case_lines.append(f"{index}.{risk_type}：{examples}{suffix}\n")

    return (
        f"样本数量：{total}个\n"
        f"违规样本：{violations}个（{percent}%）\n"
        f"（去重后{unique_count}个）\n"
        f"违规case\n"
        f"{''.join(case_lines)}"
    )
