"""USPS / EasyPost carrier-bill adapter.

Turns the EasyPost USPS billing export into unique bill identities and a database
staging plan for the bill-ingestion pipeline.
"""

from .models.bill import BillDetails, BillUploadDetails
from .models.staging_plan import SprocCall, StagingBatch, StagingPlan
from .reader.records import record_reader_factory
from .services.adapter import CarrierAdapter, UspsEasyPostAdapter

__version__ = "0.1.0"

__all__ = [
    "BillDetails",
    "BillUploadDetails",
    "CarrierAdapter",
    "SprocCall",
    "StagingBatch",
    "StagingPlan",
    "UspsEasyPostAdapter",
    "record_reader_factory",
]
