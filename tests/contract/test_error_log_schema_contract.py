from __future__ import annotations

import asyncio
import json
from pathlib import Path

import jsonschema

from review_prep.logging.error_log import ErrorLogBuffer
from review_prep.models.source_file import FileSource
from review_prep.services.orchestrator import process_files, process_risk_files

"""Error log JSON Lines contract: fixed keys, no extras, UTC 'Z' timestamps."""

ERROR_LOG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "row", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "file": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": "^[A-Z_]+$"},
        "message": {"type": "string"},
    },
}


def test_error_log_lines_match_schema(temp_workdir: Path, csv_bytes):
    buf = ErrorLogBuffer()
    asyncio.run(
        process_files(
            [
                FileSource.from_bytes("no_content.csv", csv_bytes([["x"], ["y"]])),
                FileSource.from_path(temp_workdir / "data" / "missing.txt"),
            ],
            error_log=buf,
        )
    )
    asyncio.run(process_risk_files([FileSource.from_bytes("no_score.csv", csv_bytes([["内容"], ["y"]]))], error_log=buf))

    path = buf.flush()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    for raw in lines:
        obj = json.loads(raw)
        jsonschema.validate(obj, ERROR_LOG_SCHEMA)
        assert obj["row"] == -1
    assert [json.loads(raw)["error_type"] for raw in lines] == [
        "COLUMN_NOT_FOUND",
        "DECODE_ERROR",
        "COLUMN_NOT_FOUND",
    ]
