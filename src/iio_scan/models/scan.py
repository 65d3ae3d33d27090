import socket
from typing import Any

from pydantic import Field

from .common import BasePydanticModel


class Candidate(BasePydanticModel):
    """One discovered, not yet verified, service advertisement."""
    hostname: str = Field(..., min_length=1, description="Advertised host name, e.g. 'pluto.local'.")
    address: str = Field(..., min_length=1, description="IP literal or resolvable DNS name.")
    port: int = Field(..., ge=0, le=65535, description="Advertised control port.")

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for deduplication; the port is deliberately not part of it."""
        return (self.hostname, self.address)


class Endpoint(BasePydanticModel):
    """A single resolved socket address, i.e. one getaddrinfo() row."""
    family: int
    socktype: int = socket.SOCK_STREAM
    proto: int = 0
    sockaddr: tuple[Any, ...]

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @property
    def host(self) -> str:
        return self.sockaddr[0]

    @property
    def port(self) -> int:
        return self.sockaddr[1]

    @property
    def family_name(self) -> str:
        if self.family == socket.AF_INET6:
            return "ipv6"
        if self.family == socket.AF_INET:
            return "ipv4"
        return str(self.family)


class ContextInfo(BasePydanticModel):
    """User facing (URI, description) pair for a verified context."""
    uri: str = Field(..., description="Connection string, e.g. 'ip:pluto.local' or 'ip:pluto.local:5000'.")
    description: str = Field(..., description="Human readable label.")


class ScanSummary(BasePydanticModel):
    """Counters for one full scan."""
    raw: int = 0
    duplicates_removed: int = 0
    unreachable_removed: int = 0
    contexts: int = 0
