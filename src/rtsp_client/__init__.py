"""Public surface for the RTSP control-channel client."""

from .client import ClientOptions, RTSPClient
from .codec import Request, Response, ResponseReader, build_request, parse_request, parse_response
from .errors import (
    AlreadyConnectedError,
    AuthenticationError,
    ClientDestroyedError,
    CommandError,
    ConnectionLostError,
    ConnectionSetupError,
    MethodNotValidError,
    NotConnectedError,
    NotFoundError,
    PreconditionError,
    ProtocolDecodeError,
    RTSPClientError,
    RequestTimeoutError,
    ResponseStatusError,
    ServerError,
    SessionNotFoundError,
    SessionNotSetError,
    TransportError,
    UnmatchedTransactionError,
)
from .transport import ConnectionState, TcpConnection
from .version import __version__

__all__ = [
    "__version__",
    "AlreadyConnectedError",
    "AuthenticationError",
    "ClientDestroyedError",
    "ClientOptions",
    "CommandError",
    "ConnectionLostError",
    "ConnectionSetupError",
    "ConnectionState",
    "MethodNotValidError",
    "NotConnectedError",
    "NotFoundError",
    "PreconditionError",
    "ProtocolDecodeError",
    "RTSPClient",
    "RTSPClientError",
    "Request",
    "RequestTimeoutError",
    "Response",
    "ResponseReader",
    "ResponseStatusError",
    "ServerError",
    "SessionNotFoundError",
    "SessionNotSetError",
    "TcpConnection",
    "TransportError",
    "UnmatchedTransactionError",
    "build_request",
    "parse_request",
    "parse_response",
]
