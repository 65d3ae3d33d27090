"""
Shared test doubles for the scan pipeline.
"""
from typing import Dict, List, Optional

import pytest

from iio_scan.exceptions import ContextConnectionError


class FakeContext:
    def __init__(self, attrs: Optional[Dict[str, str]] = None, devices: Optional[List[Optional[str]]] = None,
                 description: str = ""):
        self.attrs = attrs or {}
        self.devices = devices or []
        self.description = description


class FakeContextBackend:
    """In-memory ContextBackend keyed by address; unknown addresses refuse to open."""

    def __init__(self, contexts: Optional[Dict[str, FakeContext]] = None):
        self.contexts = contexts or {}
        self.opened: List[str] = []
        self.closed: List[str] = []

    async def open_context(self, address):
        if address not in self.contexts:
            raise ContextConnectionError(address)
        self.opened.append(address)
        return address

    async def close_context(self, handle):
        self.closed.append(handle)

    async def get_attribute(self, handle, name):
        return self.contexts[handle].attrs.get(name)

    async def device_count(self, handle):
        return len(self.contexts[handle].devices)

    async def device_name(self, handle, index):
        return self.contexts[handle].devices[index]

    async def context_description(self, handle):
        return self.contexts[handle].description


@pytest.fixture
def fake_context_backend():
    return FakeContextBackend()


@pytest.fixture
def make_context():
    return FakeContext
