from __future__ import annotations

import logging
from collections.abc import Sequence

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.processing_result import JoinResult, ProcessedFileResult, RiskBatchResult
from ..models.records import RiskAnalysisRow
from ..models.source_file import FileSource
from ..table.reader import TableError
from .extractor import DEFAULT_STRATEGY
from .formatters import (
    BATCH_ZIP_NAME,
    RISK_EXPORT_NAME,
    build_zip,
    encode_processed_text,
    format_risk_csv,
    processed_file_name,
)
from .orchestrator import error_type_for, load_source_mapping, process_files, process_risk_files
from .progress import ProgressTracker
from .risk_report import (
    DEFAULT_EXAMPLE_LIMIT,
    DEFAULT_THRESHOLD,
    clamp_threshold,
    filter_by_threshold,
    render_risk_report,
)
from .source_mapping import join_mapping

"""In-memory session state behind the upload screens.

PrepSession is the only owner of extraction results. Callers (CLI, UI glue)
drive it with a handful of calls and render what comes back:

- formatting flow: add_files -> remove_file / reset -> export_processed / export_zip
- risk flow: load_risk_files -> attach_mapping -> set_threshold -> filtered /
  report / export_risk_csv

All mutation happens on the caller's thread after each batch has been fully
awaited; nothing here is touched by the per-file coroutines.
"""

__all__ = [
    "PrepSession",
]

logger = logging.getLogger(__name__)


class PrepSession:
    def __init__(
        self,
        *,
        strategy: str = DEFAULT_STRATEGY,
        threshold: float = DEFAULT_THRESHOLD,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.strategy = strategy
        self.threshold = clamp_threshold(threshold)
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.files: list[ProcessedFileResult] = []
        self._next_file_id = 0
        self.risk_rows: list[RiskAnalysisRow] = []
        # 読み込み時点の行 (ファイル自身の NID 列のみ反映)
        self._loaded_rows: list[RiskAnalysisRow] = []
        self.risk_batch: RiskBatchResult | None = None
        self.mapping: dict[str, str] | None = None
        self.linked = False

    # --- formatting flow -------------------------------------------------

    async def add_files(
        self, sources: Sequence[FileSource], progress: ProgressTracker | None = None
    ) -> list[ProcessedFileResult]:
        """Process a new selection and append its results to the file list."""
        results = await process_files(
            sources,
            strategy=self.strategy,
            start_id=self._next_file_id,
            error_log=self.error_log,
            progress=progress,
        )
        self._next_file_id += len(results)
        self.files.extend(results)
        return results

    def get_file(self, file_id: int) -> ProcessedFileResult | None:
        return next((f for f in self.files if f.id == file_id), None)

    def remove_file(self, file_id: int) -> bool:
        before = len(self.files)
        self.files = [f for f in self.files if f.id != file_id]
        return len(self.files) != before

    def successful_files(self) -> list[ProcessedFileResult]:
        return [f for f in self.files if f.ok and f.rows]

    def export_processed(self, file_id: int) -> tuple[str, bytes]:
        """Return (artifact name, bytes) for one processed file."""
        result = self.get_file(file_id)
        if result is None:
            raise KeyError(f"unknown file id: {file_id}")
        if result.error:
            raise ValueError(f"file '{result.original_name}' failed: {result.error}")
        return processed_file_name(result.original_name), encode_processed_text(result.rows)

    def export_zip(self) -> tuple[str, bytes]:
        return BATCH_ZIP_NAME, build_zip(self.files)

    # --- risk flow -------------------------------------------------------

    async def load_risk_files(
        self, sources: Sequence[FileSource], progress: ProgressTracker | None = None
    ) -> RiskBatchResult:
        """Replace the risk dataset with a new merged upload.

        Any previously attached NID mapping belongs to the old dataset and is
        dropped.
        """
        batch = await process_risk_files(sources, error_log=self.error_log, progress=progress)
        self.risk_batch = batch
        self._loaded_rows = batch.rows
        self.risk_rows = batch.rows
        self.mapping = None
        self.linked = False
        return batch

    async def attach_mapping(self, source: FileSource) -> JoinResult:
        """Load a NID mapping file and join it onto the risk dataset as loaded.

        Only one mapping is active at a time: the join always starts from the
        rows as they came out of the risk files, so nids set by an earlier
        mapping do not survive a later one.

        Raises:
            TableError: if the mapping file cannot be used; the dataset is left as is
        """
        try:
            mapping = await load_source_mapping(source)
        except TableError as e:
            self.error_log.append(
                ErrorRecord.for_file(source.name, error_type_for(e), str(e))
            )
            raise
        result = join_mapping(self._loaded_rows, mapping)
        self.mapping = mapping
        self.risk_rows = result.rows
        self.linked = result.linked
        logger.info("NID mapping %s: matched=%d linked=%s", source.name, result.matched, result.linked)
        return result

    def set_threshold(self, threshold: float) -> None:
        self.threshold = clamp_threshold(threshold)

    def filtered(self) -> list[RiskAnalysisRow]:
        return filter_by_threshold(self.risk_rows, self.threshold)

    def report(self, example_limit: int = DEFAULT_EXAMPLE_LIMIT) -> str:
        return render_risk_report(self.risk_rows, self.filtered(), example_limit)

    def export_risk_csv(self) -> tuple[str, bytes]:
        """Export rows at or above the threshold, deduplicated by content."""
        return RISK_EXPORT_NAME, format_risk_csv(self.filtered())

    # --- lifecycle -------------------------------------------------------

    def reset(self) -> None:
        self.files = []
        self.risk_rows = []
        self._loaded_rows = []
        self.risk_batch = None
        self.mapping = None
        self.linked = False
