"""
Candidate discovery for iio-scan: the raw mDNS backend, the shared candidate
list, and the deduplication and reachability stages that prune it.
"""

from .candidate_list import CandidateCursor, CandidateList
from .dedup import remove_duplicates
from .mdns import DiscoveryBackend, ZeroconfBackend
from .prober import PortKnocker

__all__ = [
    "CandidateCursor",
    "CandidateList",
    "DiscoveryBackend",
    "PortKnocker",
    "ZeroconfBackend",
    "remove_duplicates",
]
