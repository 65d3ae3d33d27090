"""
Full-context access used to label verified candidates.

The scanner only needs a handful of read operations on an IIO context, so it
talks to a `ContextBackend` rather than to libiio directly. `LibiioContextBackend`
is the default; tests and other tools can provide their own.
"""
import asyncio
from typing import Any, Optional, Protocol

import structlog

from ..exceptions import ContextConnectionError

logger = structlog.get_logger(__name__)


class ContextBackend(Protocol):
    async def open_context(self, address: str) -> Any:
        """Open a context at `address`; raise ContextConnectionError on failure."""
        ...

    async def close_context(self, handle: Any) -> None:
        ...

    async def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        ...

    async def device_count(self, handle: Any) -> int:
        ...

    async def device_name(self, handle: Any, index: int) -> Optional[str]:
        ...

    async def context_description(self, handle: Any) -> str:
        ...


class _LibiioHandle:
    __slots__ = ("address", "ctx")

    def __init__(self, address: str, ctx: Any):
        self.address = address
        self.ctx = ctx


class LibiioContextBackend:
    """
    `ContextBackend` on top of the pylibiio bindings.

    libiio calls block on network I/O, so each one runs in a worker thread.
    The `iio` module is imported on first use: it needs the libiio shared
    library, which scanning for candidates alone does not.
    """

    def __init__(self):
        self.logger = logger.bind(service="LibiioContextBackend")

    async def open_context(self, address: str) -> _LibiioHandle:
        try:
            import iio  # type: ignore[import-not-found]
        except (ImportError, OSError) as e:
            raise ContextConnectionError(address, f"libiio is not available: {e}") from e

        try:
            ctx = await asyncio.to_thread(iio.NetworkContext, address)
        except OSError as e:
            self.logger.warning("No context at address", address=address, error=str(e))
            raise ContextConnectionError(address) from e
        return _LibiioHandle(address, ctx)

    async def close_context(self, handle: _LibiioHandle) -> None:
        # pylibiio destroys the underlying iio_context when the last reference goes.
        handle.ctx = None

    async def get_attribute(self, handle: _LibiioHandle, name: str) -> Optional[str]:
        return handle.ctx.attrs.get(name)

    async def device_count(self, handle: _LibiioHandle) -> int:
        return len(handle.ctx.devices)

    async def device_name(self, handle: _LibiioHandle, index: int) -> Optional[str]:
        return handle.ctx.devices[index].name

    async def context_description(self, handle: _LibiioHandle) -> str:
        return handle.ctx.description or ""
