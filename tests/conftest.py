from __future__ import annotations

import asyncio
from typing import Any, Mapping

import pytest
import pytest_asyncio

from rtsp_client.codec import Request, parse_request


def rtsp_response(
    cseq: int | None,
    status: int = 200,
    reason: str = "OK",
    headers: Mapping[str, str] | None = None,
    body: bytes = b"",
) -> bytes:
    lines = [f"RTSP/1.0 {status} {reason}"]
    if cseq is not None:
        lines.append(f"CSeq: {cseq}")
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def _record(self, level: str, msg: str, *args: Any) -> None:
        self.records.append((level, msg % args if args else msg))

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._record("trace", msg, *args)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._record("debug", msg, *args)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._record("info", msg, *args)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._record("warn", msg, *args)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._record("error", msg, *args)

    def messages(self, level: str) -> list[str]:
        return [message for record_level, message in self.records if record_level == level]


class FakeRTSPServer:
    """Scripted server: records every request and replies only when told to."""

    def __init__(self) -> None:
        self.requests: asyncio.Queue[Request] = asyncio.Queue()
        self.raw = bytearray()
        self.port = 0
        self._server: asyncio.AbstractServer | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def url(self) -> str:
        return f"rtsp://127.0.0.1:{self.port}/stream"

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._writer is not None:
            self._writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def next_request(self, timeout: float = 2.0) -> Request:
        return await asyncio.wait_for(self.requests.get(), timeout)

    async def send(self, data: bytes) -> None:
        assert self._writer is not None
        self._writer.write(data)
        await self._writer.drain()

    async def reply(self, request: Request, status: int = 200, reason: str = "OK", **kwargs: Any) -> None:
        await self.send(rtsp_response(int(request.headers["cseq"]), status, reason, **kwargs))

    def drop(self) -> None:
        assert self._writer is not None
        self._writer.transport.abort()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        try:
            while True:
                head = await reader.readuntil(b"\r\n\r\n")
                self.raw.extend(head)
                await self.requests.put(parse_request(head))
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest_asyncio.fixture
async def server():
    fake = FakeRTSPServer()
    await fake.start()
    yield fake
    await fake.stop()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
