from __future__ import annotations

from ..models.processing_result import BatchSummary

"""Summary line rendering for CLI runs.

Format:
SUMMARY files={total} success={success} failed={failed} rows={rows}
skipped_rows={skipped} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(summary: BatchSummary) -> str:
    """Render a SUMMARY line from a BatchSummary.

    Examples:
        >>> s = BatchSummary(success_files=2, failed_files=1, total_rows=40,
        ...                  skipped_rows=3, elapsed_seconds=1.5)
        >>> render_summary_line(s)
        'SUMMARY files=3 success=2 failed=1 rows=40 skipped_rows=3 elapsed_sec=1.5'
    """
    return (
        f"SUMMARY files={summary.total_files} "
        f"success={summary.success_files} "
        f"failed={summary.failed_files} "
        f"rows={summary.total_rows} "
        f"skipped_rows={summary.skipped_rows} "
        f"elapsed_sec={_format_number(summary.elapsed_seconds)}"
    )
