"""
Pydantic models for iio-scan.
"""
from .common import BasePydanticModel
from .scan import (
    Candidate,
    ContextInfo,
    Endpoint,
    ScanSummary,
)

__all__ = [
    "BasePydanticModel",
    "Candidate",
    "ContextInfo",
    "Endpoint",
    "ScanSummary",
]
