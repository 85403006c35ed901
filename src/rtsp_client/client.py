"""RTSP control-channel client: connection lifecycle and command API."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Mapping
from urllib.parse import urlparse

import httpx

from .codec import MAX_HEAD_SIZE, Request, Response, build_request
from .errors import (
    AlreadyConnectedError,
    ClientDestroyedError,
    ConnectionLostError,
    ConnectionSetupError,
    NotConnectedError,
    ProtocolDecodeError,
    RequestTimeoutError,
    TransportError,
    UnmatchedTransactionError,
)
from .events import ClientEvents, EventName, Listener
from .logger import BoundLogger, LoggerProtocol, LogLevel, create_logger
from .session import SessionState
from .transactions import TransactionTable
from .transport import UNKNOWN_ADDRESS, Connection, ConnectionState, open_connection
from .version import __version__

DEFAULT_PORT = 554
DEFAULT_USER_AGENT = f"rtsp-client/{__version__}"
SDP_MIME_TYPE = "application/sdp"


@dataclass
class ClientOptions:
    user_agent: str = DEFAULT_USER_AGENT
    default_port: int = DEFAULT_PORT
    request_timeout: float | None = None
    max_head_size: int = MAX_HEAD_SIZE
    default_headers: Mapping[str, str] | None = None
    logger: BoundLogger | LoggerProtocol | None = None
    log_level: LogLevel = "info"


class RTSPClient:
    """Client side of one RTSP control connection.

    Requests are matched to responses by CSeq, so any number of them may be
    in flight at once and the server may answer in any order. Methods that
    return a future must be called from inside a running event loop.
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        default_port: int = DEFAULT_PORT,
        request_timeout: float | None = None,
        max_head_size: int = MAX_HEAD_SIZE,
        default_headers: Mapping[str, str] | None = None,
        logger: BoundLogger | LoggerProtocol | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        self._options = ClientOptions(
            user_agent=user_agent,
            default_port=default_port,
            request_timeout=request_timeout,
            max_head_size=max_head_size,
            default_headers=default_headers,
            logger=logger,
            log_level=log_level,
        )
        self._logger: BoundLogger = create_logger(logger=logger, level=log_level)
        self._events = ClientEvents(logger=self._logger)
        self._transactions = TransactionTable(logger=self._logger)
        self._session = SessionState()
        self._state = ConnectionState.UNCONNECTED
        self._connection: Connection | None = None
        self._connecting: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> str | None:
        return self._session.url

    @property
    def session_id(self) -> str | None:
        return self._session.session_id

    @property
    def pending(self) -> list[int]:
        return self._transactions.pending

    def on(self, event: EventName, listener: Listener) -> Callable[[], None]:
        return self._events.on(event, listener)

    def off(self, event: EventName, listener: Listener) -> None:
        self._events.off(event, listener)

    # Connection lifecycle

    def connect(self, url: str) -> asyncio.Future[None]:
        if self._state is ConnectionState.CLOSED:
            raise AlreadyConnectedError("RTSPClient is closed")
        if self._state is not ConnectionState.UNCONNECTED:
            raise AlreadyConnectedError("already connecting")

        loop = asyncio.get_running_loop()
        self._state = ConnectionState.CONNECTING
        self._connecting = loop.create_task(self._open(url))
        return self._connecting

    async def _open(self, url: str) -> None:
        try:
            host, port = self._parse_url(url)
            self._logger.info("Connecting to %s:%s", host, port)
            connection = await open_connection(
                host,
                port,
                on_response=self._dispatch,
                on_lost=self._on_connection_lost,
                max_head_size=self._options.max_head_size,
                logger=self._logger,
            )
        except BaseException:
            if self._state is ConnectionState.CONNECTING:
                self._state = ConnectionState.UNCONNECTED
                self._session.url = None
            raise
        finally:
            self._connecting = None

        self._connection = connection
        self._state = ConnectionState.CONNECTED
        self._logger.info("Connected to %s", connection.remote_address)
        self._events.emit("connected", self)

    def _parse_url(self, url: str) -> tuple[str, int]:
        try:
            parsed = urlparse(url)
            port = parsed.port
        except (TypeError, ValueError) as exc:
            raise ConnectionSetupError(f"Invalid URL {url!r}: {exc}", context=url) from exc
        if not parsed.hostname:
            raise ConnectionSetupError(f"Invalid URL {url!r}: missing host", context=url)
        self._session.url = url
        return parsed.hostname, port or self._options.default_port

    def get_remote_address(self) -> str:
        if self._connection is None:
            return UNKNOWN_ADDRESS
        return self._connection.remote_address

    def close(self) -> None:
        if self._connecting is not None:
            self._connecting.cancel()
            self._connecting = None
            self._state = ConnectionState.CLOSED
            self._events.stop()
            return
        if self._connection is None:
            return
        self._logger.info("Closing connection to %s", self._connection.remote_address)
        self._teardown(ClientDestroyedError("RTSPClient is destroyed"))

    def _on_connection_lost(self, exc: Exception | None) -> None:
        if self._state is not ConnectionState.CONNECTED:
            return
        self._logger.warn("Connection lost: %s", exc or "closed by peer")
        error = ConnectionLostError("Connection lost", context=exc)
        error.__cause__ = exc
        self._teardown(error)

    def _teardown(self, error: Exception) -> None:
        connection = self._connection
        self._state = ConnectionState.CLOSED
        self._connection = None
        self._transactions.reject_all(error)
        if connection is not None:
            connection.abort()
        self._events.emit("closed", self)
        self._events.stop()

    def _dispatch(self, response: Response) -> None:
        try:
            cseq = response.cseq
            if cseq is None:
                raise ProtocolDecodeError("cseq not found", context=response)
            self._transactions.resolve(cseq, response)
        except (ProtocolDecodeError, UnmatchedTransactionError) as exc:
            self._logger.warn("Discarding response %d %s: %s", response.status, response.reason, exc)

    # Requests

    def request(
        self,
        method: str,
        target: str,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> asyncio.Future[Response]:
        if self._state is not ConnectionState.CONNECTED or self._connection is None:
            raise NotConnectedError(f"Cannot send {method}: client is {self._state.value}")

        loop = asyncio.get_running_loop()
        cseq = self._transactions.next_cseq
        request = Request(
            method=method,
            target=target,
            headers=self._build_headers(cseq, headers),
            body=body,
        )
        # Invalid input raises here, before the CSeq is consumed
        payload = build_request(request)

        transaction = self._transactions.allocate(loop)
        try:
            self._connection.write(payload)
        except TransportError as exc:
            self._transactions.reject(transaction.cseq, exc)
            return transaction.future

        transaction.sent_at = time.monotonic()
        self._logger.debug("%s %s CSeq=%d", method, target, transaction.cseq)
        self._logger.trace("Request bytes: %r", payload)

        timeout = self._options.request_timeout
        if timeout is not None:
            transaction.deadline = loop.call_later(timeout, self._expire, transaction.cseq, timeout)
        return transaction.future

    def _build_headers(self, cseq: int, headers: Mapping[str, str] | None) -> httpx.Headers:
        merged = httpx.Headers(
            [
                ("CSeq", str(cseq)),
                ("User-Agent", self._options.user_agent),
            ]
        )
        for name, value in (self._options.default_headers or {}).items():
            merged[name] = value
        for name, value in (headers or {}).items():
            merged[name] = str(value)
        # Callers must not override the sequence number
        merged["CSeq"] = str(cseq)
        return merged

    def _expire(self, cseq: int, timeout: float) -> None:
        if self._transactions.reject(
            cseq, RequestTimeoutError(f"No response for CSeq {cseq} after {timeout}s", context=cseq)
        ):
            self._logger.warn("Request CSeq %d timed out after %ss", cseq, timeout)

    # Commands

    def set_session(self, session_id: str | None) -> None:
        self._session.session_id = session_id

    def options(self) -> asyncio.Future[Response]:
        return self.request("OPTIONS", self._target())

    def describe(self) -> asyncio.Future[Response]:
        return self.request("DESCRIBE", self._target(), {"Accept": SDP_MIME_TYPE})

    def setup(self, control: str, transport: str) -> asyncio.Future[Response]:
        target = self._session.resolve(control)
        headers = {"Transport": transport}
        if self._session.session_id:
            headers["Session"] = self._session.session_id
        return self.request("SETUP", target, headers)

    def play(self, range_: str | None = None) -> asyncio.Future[Response]:
        headers = {"Session": self._session.require_session()}
        if range_:
            headers["Range"] = range_
        return self.request("PLAY", self._target(), headers)

    def pause(self) -> asyncio.Future[Response]:
        headers = {"Session": self._session.require_session()}
        return self.request("PAUSE", self._target(), headers)

    def teardown(self) -> asyncio.Future[Response]:
        headers = {"Session": self._session.require_session()}
        return self.request("TEARDOWN", self._target(), headers)

    def _target(self) -> str:
        if self._session.url is None:
            raise NotConnectedError("Client is not connected")
        return self._session.url


__all__ = ["ClientOptions", "DEFAULT_PORT", "DEFAULT_USER_AGENT", "RTSPClient"]
