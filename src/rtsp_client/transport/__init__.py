"""Transport implementations exposed to users."""

from .base import Connection, ConnectionState, UNKNOWN_ADDRESS
from .tcp import TcpConnection, open_connection

__all__ = [
    "Connection",
    "ConnectionState",
    "TcpConnection",
    "UNKNOWN_ADDRESS",
    "open_connection",
]
