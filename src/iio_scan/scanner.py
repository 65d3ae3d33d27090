"""
Scanner: drives discovery, deduplication, reachability probing and context
description for IIO devices advertised over DNS-SD.
"""
import asyncio
from typing import List, Optional, Tuple

import structlog

from .config import Config
from .context.backend import ContextBackend, LibiioContextBackend
from .context.builder import build_context_info
from .discovery.dedup import remove_duplicates
from .discovery.mdns import DiscoveryBackend, ZeroconfBackend
from .discovery.prober import PortKnocker
from .exceptions import NoServicesFoundError, ScanError, ScanTimeoutError
from .models.scan import ContextInfo, ScanSummary

logger = structlog.get_logger(__name__)


class Scanner:
    """
    Runs the scan pipeline. Stages always run in the same order: backend,
    dedup, probe, then one descriptor per surviving candidate.

    Collaborators default to the zeroconf backend, libiio and a `PortKnocker`
    built from `app_config`, and can be swapped out.
    """

    def __init__(
        self,
        app_config: Optional[Config] = None,
        backend: Optional[DiscoveryBackend] = None,
        context_backend: Optional[ContextBackend] = None,
        prober: Optional[PortKnocker] = None,
    ):
        self.app_config = app_config or Config()
        self.backend = backend or ZeroconfBackend(self.app_config.discovery)
        self.context_backend = context_backend or LibiioContextBackend()
        self.prober = prober or PortKnocker(self.app_config.probe)
        self.last_summary: Optional[ScanSummary] = None
        self.logger = logger.bind(service="Scanner")

    async def scan(self, results: Optional[List[ContextInfo]] = None) -> List[ContextInfo]:
        """Full scan. Descriptors are appended to `results` as they are built.

        Finding no services is not an error and yields an empty list. If a
        descriptor cannot be built the error propagates, and `results` keeps
        whatever was built before the failure.

        Raises:
            DiscoveryBackendError: If the discovery backend failed.
            ContextConnectionError: If a verified candidate refused a full context.
            DescriptorBuildError: If an opened context could not be described.
            ScanTimeoutError: If `scan.deadline_seconds` is set and expired.
        """
        if results is None:
            results = []

        deadline = self.app_config.scan.deadline_seconds
        if deadline is None:
            await self._run_scan(results)
            return results

        try:
            await asyncio.wait_for(self._run_scan(results), timeout=deadline)
        except asyncio.TimeoutError as e:
            self.logger.warning("Scan deadline expired", deadline_seconds=deadline, contexts=len(results))
            raise ScanTimeoutError(deadline) from e
        return results

    async def _run_scan(self, results: List[ContextInfo]) -> None:
        summary = ScanSummary()
        try:
            try:
                candidates = await self.backend.discover_raw_candidates()
            except NoServicesFoundError:
                self.logger.info("No services found; returning an empty result.")
                return

            async with candidates:
                summary.raw = len(candidates)
                self.logger.info("Raw candidates discovered", count=summary.raw)

                summary.duplicates_removed = await remove_duplicates(candidates)
                summary.unreachable_removed = await self.prober.knock(candidates)

                for candidate in candidates.snapshot():
                    try:
                        info = await build_context_info(
                            candidate,
                            self.context_backend,
                            default_port=self.app_config.discovery.default_port,
                            capacity=self.app_config.description.max_length,
                        )
                    except ScanError as e:
                        self.logger.warning("Aborting scan: context could not be described",
                                            hostname=candidate.hostname, address=candidate.address,
                                            error=str(e))
                        raise
                    results.append(info)
                    summary.contexts += 1
        finally:
            self.last_summary = summary

        self.logger.info("Scan complete", **summary.model_dump())

    async def discover_host(self) -> Optional[Tuple[str, int]]:
        """Return (address, port) of the first advertised candidate, or None.

        No deduplication or probing is done; this only answers "where is
        something to connect to".

        Raises:
            DiscoveryBackendError: If the discovery backend failed.
        """
        try:
            candidates = await self.backend.discover_raw_candidates()
        except NoServicesFoundError:
            self.logger.info("No services found while looking for a host.")
            return None

        async with candidates:
            first = candidates.first()
            if first is None:
                return None
            self.logger.info("Host discovered", hostname=first.hostname, address=first.address, port=first.port)
            return (first.address, first.port)
