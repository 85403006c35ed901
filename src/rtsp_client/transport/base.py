"""Common transport abstractions."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol, runtime_checkable

from ..codec import Response

ResponseHandler = Callable[[Response], None]
LostHandler = Callable[[Exception | None], None]

UNKNOWN_ADDRESS = "0.0.0.0"


class ConnectionState(Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@runtime_checkable
class Connection(Protocol):
    @property
    def remote_address(self) -> str: ...

    def write(self, payload: bytes) -> None: ...

    def abort(self) -> None: ...


__all__ = [
    "Connection",
    "ConnectionState",
    "LostHandler",
    "ResponseHandler",
    "UNKNOWN_ADDRESS",
]
