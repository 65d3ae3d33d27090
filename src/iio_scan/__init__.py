"""iio-scan - finds IIO contexts announced over mDNS/DNS-SD.

Raw service advertisements are deduplicated, checked for reachability with a
real TCP connection and turned into (URI, description) pairs a user can pick from.
"""

__version__ = "0.1.0"

from .config import Config
from .models import Candidate, ContextInfo
from .scanner import Scanner

__all__ = ["Candidate", "Config", "ContextInfo", "Scanner"]
