"""
Reachability probe ("port knock") for discovered candidates.

Non-IIO services are seen advertising themselves on the network, so an
advertisement alone is not trusted: each candidate must accept a real TCP
connection on at least one of its resolved addresses. The connection is
closed straight away; no protocol handshake is attempted.
"""
import asyncio
import socket

import structlog

from ..config import ProbeConfig
from ..models.scan import Candidate, Endpoint
from .candidate_list import CandidateList

logger = structlog.get_logger(__name__)


class PortKnocker:
    """
    Prunes candidates that cannot be connected to.

    Probes run concurrently, capped at `max_concurrent_probes`, while the list
    lock is held for the whole pass; removals happen afterwards in one walk.
    """

    def __init__(self, probe_config: ProbeConfig | None = None):
        self.probe_config = probe_config or ProbeConfig()
        self.logger = logger.bind(service="PortKnocker")

    async def resolve(self, address: str, port: int) -> list[Endpoint]:
        """Resolve `address`:`port` to stream endpoints of any address family.

        Raises:
            socket.gaierror: If the name cannot be resolved.
            UnicodeError: If a label of the name cannot be IDNA encoded.
        """
        loop = asyncio.get_running_loop()
        addr_infos = await loop.getaddrinfo(
            address, port, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM
        )
        return [
            Endpoint(family=family, socktype=socktype, proto=proto, sockaddr=sockaddr)
            for family, socktype, proto, _canonname, sockaddr in addr_infos
        ]

    async def try_connect(self, endpoint: Endpoint, timeout: float) -> bool:
        """Open and immediately close a TCP connection to `endpoint`."""
        loop = asyncio.get_running_loop()
        try:
            sock = socket.socket(endpoint.family, endpoint.socktype, endpoint.proto)
        except OSError as e:
            self.logger.debug("Unable to create socket", family=endpoint.family_name, error=str(e))
            return False
        try:
            sock.setblocking(False)
            await asyncio.wait_for(loop.sock_connect(sock, endpoint.sockaddr), timeout=timeout)
            return True
        except (OSError, asyncio.TimeoutError) as e:
            self.logger.debug("Connection attempt failed", family=endpoint.family_name,
                              sockaddr=endpoint.sockaddr, error=str(e) or type(e).__name__)
            return False
        finally:
            sock.close()

    async def is_reachable(self, candidate: Candidate) -> bool:
        """True if any resolved endpoint of `candidate` accepts a connection."""
        log = self.logger.bind(hostname=candidate.hostname, address=candidate.address, port=candidate.port)
        try:
            endpoints = await self.resolve(candidate.address, candidate.port)
        except (OSError, ValueError) as e:
            # gaierror for unknown names, UnicodeError for labels idna cannot encode
            log.debug("Unable to find host", error=str(e))
            return False

        for endpoint in endpoints:
            if await self.try_connect(endpoint, self.probe_config.timeout_seconds):
                log.debug("Something is listening", family=endpoint.family_name)
                return True
        log.debug("No resolved endpoint accepted a connection", endpoints=len(endpoints))
        return False

    async def knock(self, candidates: CandidateList) -> int:
        """Remove every candidate that cannot be connected to.

        Args:
            candidates: Deduplicated list, pruned in place.

        Returns:
            int: Number of entries removed.
        """
        semaphore = asyncio.Semaphore(self.probe_config.max_concurrent_probes)

        async def bounded_probe(candidate: Candidate) -> bool:
            async with semaphore:
                return await self.is_reachable(candidate)

        removed = 0
        async with candidates.traverse() as cursor:
            pending = candidates.snapshot()
            if not pending:
                return 0
            self.logger.info("Probing candidates", count=len(pending),
                             max_concurrent=self.probe_config.max_concurrent_probes,
                             timeout=self.probe_config.timeout_seconds)
            outcomes = await asyncio.gather(*(bounded_probe(c) for c in pending), return_exceptions=True)
            verdicts = iter(outcomes)
            for candidate in cursor:
                outcome = next(verdicts)
                if isinstance(outcome, Exception):
                    self.logger.warning("Reachability check failed unexpectedly", hostname=candidate.hostname,
                                        address=candidate.address, error=repr(outcome))
                if outcome is not True:
                    self.logger.debug("Removing unreachable candidate", hostname=candidate.hostname,
                                      address=candidate.address, port=candidate.port)
                    cursor.remove_current()
                    removed += 1

        self.logger.info("Probe pass complete", removed=removed, remaining=len(candidates))
        return removed
