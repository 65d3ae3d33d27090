"""Collapse candidates advertising the same (hostname, address) pair."""
import structlog

from .candidate_list import CandidateList

logger = structlog.get_logger(__name__)


async def remove_duplicates(candidates: CandidateList) -> int:
    """Remove later duplicates of each candidate, keeping the earliest one.

    Two candidates are duplicates when their `key` (hostname, address) is equal;
    the port is ignored. The whole pass runs under the list's lock.

    Args:
        candidates: List to deduplicate in place.

    Returns:
        int: Number of entries removed.
    """
    if len(candidates) < 2:
        return 0

    removed = 0
    async with candidates.traverse() as outer:
        for candidate in outer:
            inner = outer.following()
            for other in inner:
                if other.key == candidate.key:
                    logger.debug("Removing duplicate in list", hostname=other.hostname,
                                 address=other.address, port=other.port)
                    inner.remove_current()
                    removed += 1

    if removed:
        logger.info("Duplicate candidates removed", removed=removed, remaining=len(candidates))
    return removed
