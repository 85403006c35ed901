"""TCP transport built on asyncio's protocol callbacks."""

from __future__ import annotations

import asyncio
import socket

from ..codec import MAX_HEAD_SIZE, ResponseReader
from ..errors import ProtocolDecodeError, TransportError
from ..logger import BoundLogger, create_logger
from .base import UNKNOWN_ADDRESS, Connection, LostHandler, ResponseHandler


class TcpConnection(asyncio.Protocol):
    """Owns one TCP stream: writes requests and frames inbound responses."""

    def __init__(
        self,
        *,
        on_response: ResponseHandler,
        on_lost: LostHandler,
        max_head_size: int = MAX_HEAD_SIZE,
        logger: BoundLogger | None = None,
    ) -> None:
        self._on_response = on_response
        self._on_lost = on_lost
        self._logger = (logger or create_logger()).child("tcp")
        self._reader = ResponseReader(max_head_size=max_head_size, logger=self._logger)
        self._transport: asyncio.Transport | None = None

    @property
    def is_connected(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    @property
    def remote_address(self) -> str:
        if self._transport is None:
            return UNKNOWN_ADDRESS
        peer = self._transport.get_extra_info("peername")
        if not peer:
            return UNKNOWN_ADDRESS
        return str(peer[0])

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        assert isinstance(transport, asyncio.Transport)
        self._transport = transport
        sock = transport.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError as exc:
                self._logger.debug("Could not set TCP_NODELAY: %s", exc)
        self._logger.debug("TCP connection made to %s", self.remote_address)

    def data_received(self, data: bytes) -> None:
        self._logger.trace("TCP received bytes=%d", len(data))
        self._reader.feed(data)
        while True:
            try:
                response = self._reader.next_message()
            except ProtocolDecodeError as exc:
                self._logger.warn("Discarding malformed message: %s", exc)
                continue
            if response is None:
                break
            self._on_response(response)

    def connection_lost(self, exc: Exception | None) -> None:
        self._logger.debug("TCP connection lost: %s", exc or "closed by peer")
        self._transport = None
        self._reader.clear()
        self._on_lost(exc)

    def write(self, payload: bytes) -> None:
        if not self.is_connected:
            raise TransportError("TCP write failed: connection is closed")
        assert self._transport is not None
        self._logger.trace("TCP sending bytes=%d", len(payload))
        self._transport.write(payload)

    def abort(self) -> None:
        if self._transport is not None:
            self._transport.abort()


async def open_connection(
    host: str,
    port: int,
    *,
    on_response: ResponseHandler,
    on_lost: LostHandler,
    max_head_size: int = MAX_HEAD_SIZE,
    logger: BoundLogger | None = None,
) -> Connection:
    loop = asyncio.get_running_loop()
    try:
        _, connection = await loop.create_connection(
            lambda: TcpConnection(
                on_response=on_response,
                on_lost=on_lost,
                max_head_size=max_head_size,
                logger=logger,
            ),
            host,
            port,
        )
    except OSError as exc:
        raise TransportError(f"Cannot connect to {host}:{port}: {exc}", context=exc) from exc
    return connection


__all__ = ["TcpConnection", "open_connection"]
