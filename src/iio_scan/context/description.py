"""URI and description formatting for discovered contexts."""
from typing import Optional, Sequence

DEFAULT_DESCRIPTION_CAPACITY = 255


class DescriptionBuilder:
    """
    String builder with a fixed capacity, in characters.

    `write()` silently truncates at the capacity. `try_write()` is all or
    nothing, and `reserve()` keeps room for a suffix that must always fit,
    such as a closing parenthesis.
    """

    def __init__(self, capacity: int = DEFAULT_DESCRIPTION_CAPACITY):
        if capacity < 1:
            raise ValueError("Capacity must be at least 1.")
        self.capacity = capacity
        self._parts: list[str] = []
        self._length = 0
        self._reserved = 0

    def __len__(self) -> int:
        return self._length

    @property
    def remaining(self) -> int:
        return self.capacity - self._reserved - self._length

    def reserve(self, count: int) -> None:
        """Hold back up to `count` characters from subsequent writes."""
        if count < 0:
            raise ValueError("Cannot reserve a negative number of characters")
        self._reserved = min(count, self.capacity - self._length)

    def release(self) -> None:
        self._reserved = 0

    def write(self, text: str) -> int:
        """Append as much of `text` as fits. Returns the number of characters written."""
        chunk = text[:max(self.remaining, 0)]
        if chunk:
            self._parts.append(chunk)
            self._length += len(chunk)
        return len(chunk)

    def try_write(self, text: str) -> bool:
        if len(text) > self.remaining:
            return False
        self.write(text)
        return True

    def getvalue(self) -> str:
        return "".join(self._parts)


def format_uri(hostname: str, port: int, default_port: int) -> str:
    """`ip:<hostname>` on the default port, `ip:<hostname>:<port>` otherwise."""
    if port == default_port:
        return f"ip:{hostname}"
    return f"ip:{hostname}:{port}"


def describe(
    address: str,
    hw_model: Optional[str],
    serial: Optional[str],
    device_names: Sequence[Optional[str]],
    context_description: str,
    capacity: int = DEFAULT_DESCRIPTION_CAPACITY,
) -> str:
    """Build the label shown next to a context.

    Preference order: model and serial, model, serial, the context's own
    description when it has no devices, else the device names. Device names
    that would not fit are dropped whole; the list is always closed with ')'.
    """
    builder = DescriptionBuilder(capacity)
    if hw_model and serial:
        builder.write(f"{address} ({hw_model}), serial={serial}")
    elif hw_model:
        builder.write(f"{address} {hw_model}")
    elif serial:
        builder.write(f"{address} {serial}")
    elif not device_names:
        builder.write(context_description)
    else:
        builder.write(f"{address} (")
        builder.reserve(1)
        first = True
        for name in device_names:
            if not name:
                continue
            if not builder.try_write(name if first else f",{name}"):
                break
            first = False
        builder.release()
        builder.write(")")
    return builder.getvalue()
