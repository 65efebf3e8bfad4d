from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from review_prep.logging.error_log import ErrorLogBuffer
from review_prep.models.source_file import FileSource
from review_prep.services.orchestrator import (
    NO_VALID_ROWS_MESSAGE,
    error_type_for,
    load_source_mapping,
    process_files,
    process_risk_files,
)
from review_prep.table.columns import ColumnNotFoundError
from review_prep.table.reader import DecodeError, TableParseError


def test_process_files_keeps_selection_order_and_contains_failures(gbk_content_buffer, csv_bytes):
    error_log = ErrorLogBuffer()
    sources = [
        FileSource.from_bytes("good.csv", gbk_content_buffer),
        FileSource.from_bytes("bad.csv", csv_bytes([["评论"], ["x"]], "gbk")),
        FileSource.from_bytes("second.txt", csv_bytes([["content"], ["hi"], ["hi"]])),
    ]
    results = asyncio.run(process_files(sources, start_id=10, error_log=error_log))

    assert [r.original_name for r in results] == ["good.csv", "bad.csv", "second.txt"]
    assert [r.id for r in results] == [10, 11, 12]
    assert results[0].ok and len(results[0].rows) == 2
    assert not results[1].ok
    assert "Could not find the column named '内容' or 'content'" in results[1].error
    assert results[1].rows == []
    assert results[2].stats.valid_rows == 1
    assert results[2].stats.skipped_rows == 1

    assert len(error_log) == 1
    record = error_log.records[0]
    assert record.file == "bad.csv"
    assert record.row == -1
    assert record.error_type == "COLUMN_NOT_FOUND"


def test_process_files_reads_from_disk(temp_workdir: Path, gbk_content_buffer):
    path = temp_workdir / "data" / "reviews.csv"
    path.write_bytes(gbk_content_buffer)
    results = asyncio.run(process_files([FileSource.from_path(path)]))
    assert results[0].original_name == "reviews.csv"
    assert results[0].stats.valid_rows == 2


def test_process_files_missing_path_is_decode_error(temp_workdir: Path):
    error_log = ErrorLogBuffer()
    source = FileSource.from_path(temp_workdir / "data" / "gone.csv")
    results = asyncio.run(process_files([source], error_log=error_log))
    assert not results[0].ok
    assert "Failed to read file" in results[0].error
    assert error_log.records[0].error_type == "DECODE_ERROR"


def test_process_files_advances_progress(gbk_content_buffer):
    progress = MagicMock()
    sources = [FileSource.from_bytes("a.csv", gbk_content_buffer), FileSource.from_bytes("b.csv", b"")]
    asyncio.run(process_files(sources, progress=progress))
    assert progress.file_done.call_count == 2
    progress.file_done.assert_any_call("a.csv", success=True)
    progress.file_done.assert_any_call("b.csv", success=False)


def test_process_risk_files_merges_with_global_ids(gbk_risk_buffer, utf8_risk_buffer, csv_bytes):
    sources = [
        FileSource.from_bytes("gbk.csv", gbk_risk_buffer),
        FileSource.from_bytes("broken.csv", csv_bytes([["内容"], ["x"]])),
        FileSource.from_bytes("utf8.csv", utf8_risk_buffer),
    ]
    batch = asyncio.run(process_risk_files(sources))
    assert batch.message is None
    assert len(batch.rows) == 6
    assert [r.id for r in batch.rows] == list(range(6))
    assert [r.content for r in batch.rows[:3]] == ["太差了", "还行", "假货"]
    assert [f.original_name for f in batch.failed_files] == ["broken.csv"]
    assert [f.encoding for f in batch.files] == ["gb18030", None, "utf-8-sig"]


def test_process_risk_files_no_valid_rows(csv_bytes):
    sources = [FileSource.from_bytes("a.csv", csv_bytes([["风险得分"], ["abc"]]))]
    batch = asyncio.run(process_risk_files(sources))
    assert batch.rows == []
    assert batch.message == NO_VALID_ROWS_MESSAGE
    assert batch.failed_files == []


def test_load_source_mapping(csv_bytes):
    source = FileSource.from_bytes("map.csv", csv_bytes([["NID", "内容"], ["N1", "hello"]]))
    assert asyncio.run(load_source_mapping(source)) == {"hello": "N1"}


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ColumnNotFoundError(["内容"], []), "COLUMN_NOT_FOUND"),
        (TableParseError("x"), "PARSE_ERROR"),
        (DecodeError("x"), "DECODE_ERROR"),
        (FileNotFoundError("x"), "DECODE_ERROR"),
        (ValueError("x"), "PROCESSING_ERROR"),
    ],
)
def test_error_type_for(exc, expected):
    assert error_type_for(exc) == expected
