"""Domain models for the review export preparation pipeline.

Row records produced by extraction and the per-file / per-batch result
containers handed back to callers.
"""

from .error_record import ErrorRecord
from .processing_result import (
    BatchSummary,
    JoinResult,
    ProcessedFileResult,
    ProcessingStats,
    RiskBatchResult,
    RiskFileResult,
)
from .records import ProcessedRow, RawRecord, RawTable, RiskAnalysisRow
from .source_file import FileSource

__all__ = [
    # Parsed input
    "RawRecord",
    "RawTable",
    "FileSource",
    # Extracted rows
    "ProcessedRow",
    "RiskAnalysisRow",
    # Results
    "ProcessingStats",
    "ProcessedFileResult",
    "RiskFileResult",
    "RiskBatchResult",
    "JoinResult",
    "BatchSummary",
    "ErrorRecord",
]
