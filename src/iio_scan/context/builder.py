"""Turn a verified candidate into a `ContextInfo`."""
import structlog

from ..exceptions import DescriptorBuildError
from ..models.scan import Candidate, ContextInfo
from .backend import ContextBackend
from .description import DEFAULT_DESCRIPTION_CAPACITY, describe, format_uri

logger = structlog.get_logger(__name__)


async def build_context_info(
    candidate: Candidate,
    backend: ContextBackend,
    default_port: int,
    capacity: int = DEFAULT_DESCRIPTION_CAPACITY,
) -> ContextInfo:
    """Open a transient context on `candidate` and describe it.

    The context is always closed before returning.

    Raises:
        ContextConnectionError: If no context could be opened at the address.
        DescriptorBuildError: If reading from the opened context failed.
    """
    log = logger.bind(hostname=candidate.hostname, address=candidate.address, port=candidate.port)
    handle = await backend.open_context(candidate.address)
    try:
        hw_model = await backend.get_attribute(handle, "hw_model")
        serial = await backend.get_attribute(handle, "hw_serial")
        count = await backend.device_count(handle)
        names = [await backend.device_name(handle, i) for i in range(count)]
        ctx_description = await backend.context_description(handle)
    except (OSError, LookupError, AttributeError) as e:
        log.warning("Failed to read context attributes", error=str(e))
        raise DescriptorBuildError(candidate.address, str(e)) from e
    finally:
        await backend.close_context(handle)

    info = ContextInfo(
        uri=format_uri(candidate.hostname, candidate.port, default_port),
        description=describe(candidate.address, hw_model, serial, names, ctx_description, capacity),
    )
    log.debug("Context described", uri=info.uri, description=info.description)
    return info
