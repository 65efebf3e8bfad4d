from __future__ import annotations

import json

from review_prep.models.error_record import FILE_LEVEL_ROW, ErrorRecord

"""Unit tests for the ErrorRecord model."""


def test_error_record_row_minus_one_support():
    """File-level failures are recorded with row=-1."""
    rec = ErrorRecord.create(
        file="problematic.csv",
        row=-1,
        error_type="COLUMN_NOT_FOUND",
        message="Could not find the column named '内容' or 'content'. Found columns: '评论'",
    )

    assert rec.row == -1
    assert rec.file == "problematic.csv"
    assert rec.error_type == "COLUMN_NOT_FOUND"

    data = json.loads(rec.to_json_line())
    assert data["row"] == -1
    assert data["file"] == "problematic.csv"
    assert "timestamp" in data and data["timestamp"].endswith("Z")
    assert set(data.keys()) == {"timestamp", "file", "row", "error_type", "message"}


def test_error_record_keeps_non_ascii_text():
    rec = ErrorRecord.create("评论.csv", -1, "PARSE_ERROR", "解析失败")
    line = rec.to_json_line()
    assert "评论.csv" in line
    assert "解析失败" in line
    assert json.loads(line)["message"] == "解析失败"


def test_error_record_positive_row_number():
    rec = ErrorRecord.create("normal.csv", 42, "PARSE_ERROR", "bad quote")
    assert json.loads(rec.to_json_line())["row"] == 42


def test_for_file_uses_file_level_row():
    rec = ErrorRecord.for_file("broken.csv", "DECODE_ERROR", "Failed to read file")
    assert rec.row == FILE_LEVEL_ROW == -1
    assert rec.error_type == "DECODE_ERROR"
    assert rec.message == "Failed to read file"
