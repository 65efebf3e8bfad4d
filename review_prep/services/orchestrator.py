from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.processing_result import ProcessedFileResult, RiskBatchResult, RiskFileResult
from ..models.source_file import FileSource
from ..table.columns import ColumnNotFoundError
from ..table.reader import DecodeError, TableError, TableParseError
from .extractor import DEFAULT_STRATEGY, process_buffer, process_risk_buffer
from .merger import merge_risk_rows
from .progress import ProgressTracker
from .source_mapping import build_mapping

"""Batch orchestration for uploaded files (fork-join on one event loop).

Each file is one coroutine: read bytes (the only await), then decode, parse
and extract synchronously. All coroutines of a batch are started together in
selection order and awaited with asyncio.gather, so merging and global id
assignment only ever see the complete set of per-file results. Nothing is
shared between coroutines while they run.

Failures are contained per file: a file that cannot be read, parsed or matched
yields a result with `error` set and no rows, and is appended to the error log.
"""

__all__ = [
    "NO_VALID_ROWS_MESSAGE",
    "process_files",
    "process_risk_files",
    "load_source_mapping",
    "error_type_for",
]

logger = logging.getLogger(__name__)

NO_VALID_ROWS_MESSAGE = "No valid rows found in the uploaded files. Please check the column names."


def error_type_for(exc: BaseException) -> str:
    """Classify a per-file failure for the error log."""
    if isinstance(exc, ColumnNotFoundError):
        return "COLUMN_NOT_FOUND"
    if isinstance(exc, TableParseError):
        return "PARSE_ERROR"
    if isinstance(exc, (DecodeError, OSError)):
        return "DECODE_ERROR"
    return "PROCESSING_ERROR"


async def _read_source(source: FileSource) -> bytes:
    try:
        return await source.read()
    except OSError as e:
        raise DecodeError(f"Failed to read file: {e}") from e


def _record_failure(
    error_log: ErrorLogBuffer | None, source: FileSource, exc: BaseException
) -> str:
    message = str(exc)
    logger.error("%s: %s", source.name, message)
    if error_log is not None:
        error_log.append(ErrorRecord.for_file(source.name, error_type_for(exc), message))
    return message


async def _process_one(
    source: FileSource,
    file_id: int,
    strategy: str,
    error_log: ErrorLogBuffer | None,
    progress: ProgressTracker | None,
) -> ProcessedFileResult:
    try:
        buffer = await _read_source(source)
        extraction = process_buffer(buffer, strategy)
    except (TableError, ValueError) as e:
        message = _record_failure(error_log, source, e)
        if progress is not None:
            progress.file_done(source.name, success=False)
        return ProcessedFileResult(id=file_id, original_name=source.name, error=message)

    stats = extraction.stats
    logger.info(
        "%s: encoding=%s total=%d valid=%d skipped=%d",
        source.name,
        extraction.encoding,
        stats.total_rows,
        stats.valid_rows,
        stats.skipped_rows,
    )
    if progress is not None:
        progress.file_done(source.name, success=True)
    return ProcessedFileResult(
        id=file_id,
        original_name=source.name,
        rows=extraction.rows,
        stats=stats,
    )


async def process_files(
    sources: Sequence[FileSource],
    *,
    strategy: str = DEFAULT_STRATEGY,
    start_id: int = 0,
    error_log: ErrorLogBuffer | None = None,
    progress: ProgressTracker | None = None,
) -> list[ProcessedFileResult]:
    """Format every source concurrently; results come back in selection order.

    Args:
        sources: Uploaded files in selection order
        strategy: Tag written into every ProcessedRow
        start_id: First session-local id to hand out (ids are start_id + index)
        error_log: Buffer receiving one record per failed file
        progress: Optional progress display advanced as files complete
    """
    tasks = [
        _process_one(source, start_id + index, strategy, error_log, progress)
        for index, source in enumerate(sources)
    ]
    return list(await asyncio.gather(*tasks))


async def _process_risk_one(
    source: FileSource,
    error_log: ErrorLogBuffer | None,
    progress: ProgressTracker | None,
) -> RiskFileResult:
    try:
        buffer = await _read_source(source)
        extraction = process_risk_buffer(buffer)
    except (TableError, ValueError) as e:
        message = _record_failure(error_log, source, e)
        if progress is not None:
            progress.file_done(source.name, success=False)
        return RiskFileResult(original_name=source.name, error=message)

    logger.info("%s: encoding=%s scored_rows=%d", source.name, extraction.encoding, len(extraction.rows))
    if progress is not None:
        progress.file_done(source.name, success=True)
    return RiskFileResult(original_name=source.name, rows=extraction.rows, encoding=extraction.encoding)


async def process_risk_files(
    sources: Sequence[FileSource],
    *,
    error_log: ErrorLogBuffer | None = None,
    progress: ProgressTracker | None = None,
) -> RiskBatchResult:
    """Extract every risk export concurrently, then merge with dense ids.

    The merge runs only after all files have finished. When the merged set is
    empty the result carries NO_VALID_ROWS_MESSAGE instead of raising.
    """
    tasks = [_process_risk_one(source, error_log, progress) for source in sources]
    files = list(await asyncio.gather(*tasks))

    rows = merge_risk_rows(f.rows for f in files if f.ok)
    message = None
    if not rows:
        message = NO_VALID_ROWS_MESSAGE
        logger.warning(message)
    return RiskBatchResult(rows=rows, files=files, message=message)


async def load_source_mapping(source: FileSource) -> dict[str, str]:
    """Read and parse one NID mapping upload.

    Raises:
        TableError: if the file cannot be read, parsed or lacks NID/content columns
    """
    buffer = await _read_source(source)
    return build_mapping(buffer)
