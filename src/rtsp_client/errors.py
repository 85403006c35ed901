"""Custom exceptions raised by the RTSP client."""

from __future__ import annotations

from typing import Any


class RTSPClientError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class ConnectionSetupError(RTSPClientError):
    """Raised when the URL or the transport cannot be set up."""


class TransportError(RTSPClientError):
    """Raised when the socket fails."""


class ConnectionLostError(TransportError):
    """Raised for requests still pending when the server drops the connection."""


class ProtocolDecodeError(RTSPClientError):
    """Raised when inbound bytes cannot be decoded into a message."""


class UnmatchedTransactionError(RTSPClientError):
    """Raised when a response carries a CSeq with no pending request."""

    def __init__(self, cseq: int, *, context: Any | None = None) -> None:
        super().__init__(f"Transaction not found for CSeq {cseq}", context=context)
        self.cseq = cseq


class PreconditionError(RTSPClientError):
    """Raised when a command is issued in a state that cannot serve it."""


class SessionNotSetError(PreconditionError):
    """Raised when a command needs a session id that was never set."""


class NotConnectedError(PreconditionError):
    """Raised when a request is issued without an established connection."""


class AlreadyConnectedError(RTSPClientError):
    """Raised when connect() is called twice on the same client."""


class ClientDestroyedError(RTSPClientError):
    """Rejection value for requests still pending when the client is closed."""


class RequestTimeoutError(RTSPClientError):
    """Raised when a request outlives the configured deadline."""


class ResponseStatusError(RTSPClientError):
    """Raised by Response.raise_for_status for non-2xx replies."""

    def __init__(self, status: int, reason: str, *, context: Any | None = None) -> None:
        super().__init__(f"{status} {reason}".strip(), context=context)
        self.status = status
        self.reason = reason


class CommandError(ResponseStatusError):
    """Raised when the server rejects the request as invalid."""


class AuthenticationError(ResponseStatusError):
    """Raised when the server requires credentials."""


class NotFoundError(ResponseStatusError):
    """Raised when the requested stream does not exist."""


class SessionNotFoundError(ResponseStatusError):
    """Raised when the server no longer knows the session id."""


class MethodNotValidError(ResponseStatusError):
    """Raised when the method is not valid in the session's current state."""


class ServerError(ResponseStatusError):
    """Raised for 5xx style failures."""


__all__ = [
    "AlreadyConnectedError",
    "AuthenticationError",
    "ClientDestroyedError",
    "CommandError",
    "ConnectionLostError",
    "ConnectionSetupError",
    "MethodNotValidError",
    "NotConnectedError",
    "NotFoundError",
    "PreconditionError",
    "ProtocolDecodeError",
    "RTSPClientError",
    "RequestTimeoutError",
    "ResponseStatusError",
    "ServerError",
    "SessionNotFoundError",
    "SessionNotSetError",
    "TransportError",
    "UnmatchedTransactionError",
]
