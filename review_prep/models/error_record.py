from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Every failure the pipeline records today concerns a whole upload (missing
column, unreadable bytes, malformed quoting), so records are built with
`ErrorRecord.for_file()` and carry FILE_LEVEL_ROW. The `row` field stays in
the schema so row-level problems can be logged without changing the format.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    """One line of the error log.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Display name of the upload
        row: 1-based data row, or FILE_LEVEL_ROW
        error_type: COLUMN_NOT_FOUND, PARSE_ERROR, DECODE_ERROR or PROCESSING_ERROR
        message: Same text the caller shows for the failed file
    """
    timestamp: str
    file: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @classmethod
    def create(cls, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(
            timestamp=_utc_timestamp(),
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    @classmethod
    def for_file(cls, file: str, error_type: str, message: str) -> ErrorRecord:
        """Record a failure of the upload as a whole."""
        return cls.create(file, FILE_LEVEL_ROW, error_type, message)

    def to_json_line(self) -> str:
        # asdict 経由で固定キーのみ出力
        return json.dumps(asdict(self), ensure_ascii=False)
