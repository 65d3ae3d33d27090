"""
Exceptions raised by the scan pipeline.
"""
from typing import Optional


class ScanError(Exception):
    """Base class for all iio-scan errors."""
    pass


class NoServicesFoundError(ScanError):
    """Raised by a discovery backend that saw no matching service.

    This is not a failure: the scanner turns it into an empty result so that
    callers trying several discovery mechanisms are not aborted by this one.
    """
    pass


class DiscoveryBackendError(ScanError):
    """Raised when the discovery backend itself fails."""
    pass


class ContextConnectionError(ScanError):
    """Raised when a full context cannot be opened at an address."""
    def __init__(self, address: str, message: Optional[str] = None):
        super().__init__(message or f"No context at {address}")
        self.address = address


class DescriptorBuildError(ScanError):
    """Raised when a context opened but describing it failed."""
    def __init__(self, address: str, message: str):
        super().__init__(f"Failed to describe context at {address}: {message}")
        self.address = address
        self.original_message = message


class ScanTimeoutError(ScanError):
    """Raised when a scan does not finish before its deadline."""
    def __init__(self, deadline_seconds: float):
        super().__init__(f"Scan did not complete within {deadline_seconds}s")
        self.deadline_seconds = deadline_seconds
