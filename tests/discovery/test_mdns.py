"""
Unit tests for the zeroconf discovery backend.
"""
import asyncio
from unittest.mock import MagicMock, patch

import pytest
from zeroconf import ServiceStateChange, Zeroconf

from iio_scan.config import DiscoveryConfig
from iio_scan.discovery.candidate_list import CandidateList
from iio_scan.discovery.mdns import ZeroconfBackend
from iio_scan.exceptions import DiscoveryBackendError, NoServicesFoundError

SERVICE_TYPE = "_iio._tcp.local."


@pytest.fixture
def discovery_config():
    return DiscoveryConfig(browse_timeout_seconds=0.05, resolve_timeout_ms=500)


@pytest.fixture
def backend(discovery_config):
    return ZeroconfBackend(discovery_config)


# --- Mock zeroconf components ---
class FakeAsyncZeroconf:
    def __init__(self):
        self.zeroconf = MagicMock(spec=Zeroconf)
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True


def make_browser_cls(names):
    """AsyncServiceBrowser stand-in that announces `names` as soon as it starts."""
    class Browser:
        instances = []

        def __init__(self, zc, service_types, handlers):
            self.service_types = service_types
            self.cancelled = False
            Browser.instances.append(self)
            for name in names:
                for handler in handlers:
                    handler(zeroconf=zc, service_type=service_types[0], name=name,
                            state_change=ServiceStateChange.Added)

        async def async_cancel(self):
            self.cancelled = True

    return Browser


def make_info_cls(table):
    """AsyncServiceInfo stand-in resolving names from `table`.

    `table` maps a service name to (server, port, addresses), or to None for a
    service that fails to resolve.
    """
    class Info:
        def __init__(self, type_, name):
            self.type = type_
            self.name = name
            entry = table.get(name)
            self._ok = entry is not None
            self.server, self.port, self._addresses = entry if entry else (None, None, [])

        async def async_request(self, zc, timeout_ms):
            return self._ok

        def parsed_scoped_addresses(self):
            return list(self._addresses)

    return Info
# --- End Mock zeroconf components ---


@pytest.mark.asyncio
async def test_one_candidate_per_address(backend):
    names = ["pluto._iio._tcp.local.", "m2k._iio._tcp.local."]
    table = {
        names[0]: ("pluto.local.", 30431, ["192.168.2.1", "fe80::1%eth0"]),
        names[1]: ("m2k.local.", 5000, ["192.168.3.1"]),
    }
    with patch("iio_scan.discovery.mdns.AsyncZeroconf", FakeAsyncZeroconf), \
         patch("iio_scan.discovery.mdns.AsyncServiceBrowser", make_browser_cls(names)) as browser_cls, \
         patch("iio_scan.discovery.mdns.AsyncServiceInfo", make_info_cls(table)):
        candidates = await backend.discover_raw_candidates()

    assert isinstance(candidates, CandidateList)
    assert [(c.hostname, c.address, c.port) for c in candidates.snapshot()] == [
        ("pluto.local", "192.168.2.1", 30431),
        ("pluto.local", "fe80::1%eth0", 30431),
        ("m2k.local", "192.168.3.1", 5000),
    ]
    assert browser_cls.instances[0].cancelled
    assert browser_cls.instances[0].service_types == [SERVICE_TYPE]


@pytest.mark.asyncio
async def test_unresolved_services_are_skipped(backend):
    names = ["gone._iio._tcp.local.", "pluto._iio._tcp.local."]
    table = {names[1]: ("pluto.local.", 30431, ["192.168.2.1"])}
    with patch("iio_scan.discovery.mdns.AsyncZeroconf", FakeAsyncZeroconf), \
         patch("iio_scan.discovery.mdns.AsyncServiceBrowser", make_browser_cls(names)), \
         patch("iio_scan.discovery.mdns.AsyncServiceInfo", make_info_cls(table)):
        candidates = await backend.discover_raw_candidates()

    assert len(candidates) == 1
    assert candidates.first().hostname == "pluto.local"


@pytest.mark.asyncio
async def test_nothing_announced_raises_no_services(backend):
    with patch("iio_scan.discovery.mdns.AsyncZeroconf", FakeAsyncZeroconf), \
         patch("iio_scan.discovery.mdns.AsyncServiceBrowser", make_browser_cls([])), \
         patch("iio_scan.discovery.mdns.AsyncServiceInfo", make_info_cls({})):
        with pytest.raises(NoServicesFoundError):
            await backend.discover_raw_candidates()


@pytest.mark.asyncio
async def test_socket_failure_raises_backend_error(backend):
    class BrokenZeroconf(FakeAsyncZeroconf):
        async def __aenter__(self):
            raise OSError(19, "No such device")

    with patch("iio_scan.discovery.mdns.AsyncZeroconf", BrokenZeroconf):
        with pytest.raises(DiscoveryBackendError):
            await backend.discover_raw_candidates()


@pytest.mark.asyncio
async def test_resolve_timeout_is_skipped(backend):
    class SlowInfo:
        def __init__(self, type_, name):
            pass

        async def async_request(self, zc, timeout_ms):
            raise asyncio.TimeoutError()

    with patch("iio_scan.discovery.mdns.AsyncServiceInfo", SlowInfo):
        assert await backend._resolve_service(MagicMock(), SERVICE_TYPE, "slow._iio._tcp.local.") == []


@pytest.mark.asyncio
async def test_service_without_host_name_is_skipped(backend):
    names = ["root._iio._tcp.local.", "pluto._iio._tcp.local."]
    table = {
        names[0]: (".", 30431, ["192.168.2.9"]),
        names[1]: ("pluto.local.", 30431, ["192.168.2.1"]),
    }
    with patch("iio_scan.discovery.mdns.AsyncZeroconf", FakeAsyncZeroconf), \
         patch("iio_scan.discovery.mdns.AsyncServiceBrowser", make_browser_cls(names)), \
         patch("iio_scan.discovery.mdns.AsyncServiceInfo", make_info_cls(table)):
        candidates = await backend.discover_raw_candidates()

    assert [c.hostname for c in candidates.snapshot()] == ["pluto.local"]
