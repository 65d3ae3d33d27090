"""
mDNS/DNS-SD discovery backend built on zeroconf.

Browses for IIOD services for a fixed window and resolves every announcement
into raw `Candidate`s, one per advertised address. No filtering happens here:
duplicates and stale announcements are expected and handled by later stages.
"""
import asyncio
from typing import List, Optional, Protocol

import structlog
from zeroconf import Error as ZeroconfError
from zeroconf import ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from ..config import DiscoveryConfig
from ..exceptions import DiscoveryBackendError, NoServicesFoundError
from ..models.scan import Candidate
from .candidate_list import CandidateList

logger = structlog.get_logger(__name__)


class DiscoveryBackend(Protocol):
    """Anything able to produce a raw candidate list.

    Implementations raise `NoServicesFoundError` when nothing was seen and
    `DiscoveryBackendError` for any other failure.
    """

    async def discover_raw_candidates(self) -> CandidateList:
        ...


class ZeroconfBackend:
    """Discovers IIOD services with zeroconf's asyncio API."""

    def __init__(self, discovery_config: Optional[DiscoveryConfig] = None):
        self.discovery_config = discovery_config or DiscoveryConfig()
        self.logger = logger.bind(service="ZeroconfBackend")

    async def discover_raw_candidates(self) -> CandidateList:
        service_types = self.discovery_config.mdns_service_types or ["_iio._tcp.local."]
        browse_window = self.discovery_config.browse_timeout_seconds
        self.logger.info("Starting mDNS discovery", service_types=service_types, timeout=browse_window)

        resolvers: List[asyncio.Task] = []
        try:
            async with AsyncZeroconf() as aiozc:
                def on_service_state_change(
                    zeroconf: Zeroconf, service_type: str, name: str, state_change: ServiceStateChange
                ) -> None:
                    self.logger.debug("mDNS service state change detected.", service_name=name,
                                      service_type=service_type, state=str(state_change))
                    if state_change == ServiceStateChange.Added:
                        resolvers.append(asyncio.create_task(
                            self._resolve_service(aiozc.zeroconf, service_type, name)
                        ))

                browser = AsyncServiceBrowser(
                    aiozc.zeroconf, service_types, handlers=[on_service_state_change]
                )
                try:
                    await asyncio.sleep(browse_window)
                finally:
                    await browser.async_cancel()

                resolved = await asyncio.gather(*resolvers) if resolvers else []
        except (OSError, ZeroconfError) as e:
            for task in resolvers:
                task.cancel()
            self.logger.exception("mDNS discovery failed", error=str(e))
            raise DiscoveryBackendError(f"mDNS discovery failed: {e}") from e

        candidates = [candidate for batch in resolved for candidate in batch]
        if not candidates:
            self.logger.info("No mDNS services found", service_types=service_types)
            raise NoServicesFoundError(f"No services of type {', '.join(service_types)} found")

        self.logger.info("mDNS discovery finished", services=len(resolvers), candidates=len(candidates))
        return CandidateList(candidates)

    async def _resolve_service(self, zc: Zeroconf, service_type: str, name: str) -> List[Candidate]:
        """Resolve one announcement into candidates, one per address."""
        log = self.logger.bind(service_name=name, service_type=service_type)
        try:
            info = AsyncServiceInfo(service_type, name)
            if not await info.async_request(zc, self.discovery_config.resolve_timeout_ms):
                log.warning("Failed to resolve mDNS service info (request timed out or no info).")
                return []
        except (OSError, ZeroconfError, asyncio.TimeoutError) as e:
            log.warning("Error resolving mDNS service info", error=str(e))
            return []

        if info.port is None:
            log.warning("Resolved mDNS service has no port.")
            return []

        hostname = (info.server or name).rstrip(".")
        if not hostname:
            log.warning("Resolved mDNS service has no host name.", server=info.server)
            return []

        addresses = info.parsed_scoped_addresses()
        if not addresses:
            log.warning("No IP address found for mDNS service.", hostname=hostname)
            return []

        log.debug("Successfully resolved mDNS service info", hostname=hostname,
                  port=info.port, addresses=addresses)
        return [Candidate(hostname=hostname, address=address, port=info.port) for address in addresses]
