"""Domain models for the USPS EasyPost bill adapter."""

from .bill import BillDetails, BillUploadDetails
from .error_record import FILE_LEVEL_ROW, ErrorRecord
from .processing_result import FileStat, ProcessingResult
from .staging_plan import SprocCall, StagingBatch, StagingPlan

__all__ = [
    # Bill identity models
    "BillDetails",
    "BillUploadDetails",
    # Staging plan models
    "SprocCall",
    "StagingBatch",
    "StagingPlan",
    # Processing models
    "ErrorRecord",
    "FILE_LEVEL_ROW",
    "FileStat",
    "ProcessingResult",
]
