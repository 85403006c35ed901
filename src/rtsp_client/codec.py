"""RTSP/1.0 message codec: request building, message parsing and stream framing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import httpx

from .errors import (
    AuthenticationError,
    CommandError,
    MethodNotValidError,
    NotFoundError,
    ProtocolDecodeError,
    ResponseStatusError,
    ServerError,
    SessionNotFoundError,
)
from .logger import BoundLogger, create_logger

PROTOCOL_VERSION = "RTSP/1.0"
MAX_HEAD_SIZE = 64 * 1024

# RFC 2326 10.12: "$" <channel:1> <length:2> <data>
INTERLEAVED_MARKER = 0x24

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_LINE_BREAK = re.compile(rb"[\r\n]")
_STATUS_ERRORS: dict[int, type[ResponseStatusError]] = {
    401: AuthenticationError,
    404: NotFoundError,
    454: SessionNotFoundError,
    455: MethodNotValidError,
}


@dataclass
class Request:
    method: str
    target: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""
    version: str = PROTOCOL_VERSION


@dataclass
class Response:
    status: int
    reason: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""
    version: str = PROTOCOL_VERSION

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def cseq(self) -> int | None:
        """Sequence number echoed by the server, None when the header is absent."""
        value = self.headers.get("cseq")
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ProtocolDecodeError(f"Invalid CSeq header: {value!r}", context=self) from exc

    @property
    def session_id(self) -> str | None:
        value = self.headers.get("session")
        if not value:
            return None
        return value.split(";", 1)[0].strip() or None

    @property
    def session_timeout(self) -> int | None:
        value = self.headers.get("session")
        if not value:
            return None
        for param in value.split(";")[1:]:
            name, _, raw = param.partition("=")
            if name.strip().lower() == "timeout":
                try:
                    return int(raw.strip())
                except ValueError:
                    return None
        return None

    @property
    def content_base(self) -> str | None:
        return self.headers.get("content-base")

    @property
    def public_methods(self) -> list[str]:
        value = self.headers.get("public", "")
        return [method.strip() for method in value.split(",") if method.strip()]

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def raise_for_status(self) -> "Response":
        """Raise a ResponseStatusError subclass for anything outside 2xx."""
        if self.ok:
            return self
        error_cls = _STATUS_ERRORS.get(self.status)
        if error_cls is None:
            if self.status >= 500:
                error_cls = ServerError
            elif self.status >= 400:
                error_cls = CommandError
            else:
                error_cls = ResponseStatusError
        raise error_cls(self.status, self.reason, context=self)


def build_request(request: Request) -> bytes:
    if not _TOKEN.match(request.method):
        raise ValueError(f"Invalid method: {request.method!r}")
    if not request.target or any(ch.isspace() for ch in request.target):
        raise ValueError(f"Invalid request target: {request.target!r}")

    lines = [f"{request.method} {request.target} {request.version}".encode("utf-8")]
    for name, value in request.headers.raw:
        if _LINE_BREAK.search(name) or _LINE_BREAK.search(value):
            raise ValueError(f"Header {name!r} contains a line break")
        lines.append(name + b": " + value)
    if request.body and "content-length" not in request.headers:
        lines.append(b"Content-Length: %d" % len(request.body))
    return b"\r\n".join(lines) + b"\r\n\r\n" + request.body


def parse_response(data: bytes) -> Response:
    start_line, headers, body = _parse_message(data)
    parts = start_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("RTSP/"):
        raise ProtocolDecodeError(f"Invalid status line: {start_line!r}")
    version, status_text = parts[0], parts[1]
    if len(status_text) != 3 or not status_text.isdigit():
        raise ProtocolDecodeError(f"Invalid status code: {status_text!r}")
    reason = parts[2] if len(parts) > 2 else ""
    return Response(status=int(status_text), reason=reason, headers=headers, body=body, version=version)


def parse_request(data: bytes) -> Request:
    start_line, headers, body = _parse_message(data)
    parts = start_line.split(" ")
    if len(parts) != 3 or not parts[2].startswith("RTSP/"):
        raise ProtocolDecodeError(f"Invalid request line: {start_line!r}")
    method, target, version = parts
    return Request(method=method, target=target, headers=headers, body=body, version=version)


class ResponseReader:
    """Buffers inbound bytes and cuts them into complete responses."""

    def __init__(self, *, max_head_size: int = MAX_HEAD_SIZE, logger: BoundLogger | None = None) -> None:
        self._buffer = bytearray()
        self._max_head_size = max_head_size
        self._logger = (logger or create_logger()).child("codec")

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def clear(self) -> None:
        self._buffer.clear()

    def next_message(self) -> Response | None:
        """Return the next complete response, or None until more bytes arrive.

        A malformed message is dropped from the buffer before
        ProtocolDecodeError is raised, so the caller can keep reading.
        """
        while True:
            self._skip_blank_lines()
            if not self._buffer:
                return None

            if self._buffer[0] == INTERLEAVED_MARKER:
                if not self._skip_interleaved_frame():
                    return None
                continue

            head_end, separator = _find_head_end(self._buffer)
            if head_end < 0:
                if len(self._buffer) > self._max_head_size:
                    self._buffer.clear()
                    raise ProtocolDecodeError(f"Message head exceeds {self._max_head_size} bytes")
                return None

            body_start = head_end + separator
            try:
                length = _content_length(bytes(self._buffer[:head_end]))
            except ProtocolDecodeError:
                del self._buffer[:body_start]
                raise

            total = body_start + length
            if len(self._buffer) < total:
                return None
            message = bytes(self._buffer[:total])
            del self._buffer[:total]
            return parse_response(message)

    def _skip_blank_lines(self) -> None:
        index = 0
        while index < len(self._buffer) and self._buffer[index] in (0x0D, 0x0A):
            index += 1
        if index:
            del self._buffer[:index]

    def _skip_interleaved_frame(self) -> bool:
        if len(self._buffer) < 4:
            return False
        channel = self._buffer[1]
        size = int.from_bytes(self._buffer[2:4], "big")
        if len(self._buffer) < 4 + size:
            return False
        del self._buffer[: 4 + size]
        self._logger.trace("Skipped interleaved frame channel=%d bytes=%d", channel, size)
        return True


def _find_head_end(buffer: bytes | bytearray) -> tuple[int, int]:
    crlf = buffer.find(b"\r\n\r\n")
    lf = buffer.find(b"\n\n")
    if crlf >= 0 and (lf < 0 or crlf <= lf):
        return crlf, 4
    if lf >= 0:
        return lf, 2
    return -1, 0


def _content_length(head: bytes) -> int:
    for line in head.split(b"\n")[1:]:
        name, sep, value = line.partition(b":")
        if sep and name.strip().lower() == b"content-length":
            try:
                length = int(value.strip())
            except ValueError as exc:
                raise ProtocolDecodeError(f"Invalid Content-Length: {value!r}") from exc
            if length < 0:
                raise ProtocolDecodeError(f"Invalid Content-Length: {length}")
            return length
    return 0


def _parse_message(data: bytes) -> tuple[str, httpx.Headers, bytes]:
    head_end, separator = _find_head_end(data)
    if head_end < 0:
        raise ProtocolDecodeError("Incomplete message head")
    head = data[:head_end]
    rest = data[head_end + separator :]

    lines = [line.rstrip(b"\r") for line in head.split(b"\n")]
    start_line = lines[0].decode("utf-8", errors="replace").strip()
    if not start_line:
        raise ProtocolDecodeError("Empty start line")

    fields: list[tuple[bytes, bytes]] = []
    for line in lines[1:]:
        if line[:1] in (b" ", b"\t"):
            if not fields:
                raise ProtocolDecodeError("Continuation line before first header")
            name, value = fields[-1]
            fields[-1] = (name, value + b" " + line.strip())
            continue
        name, sep, value = line.partition(b":")
        if not sep or not name.strip():
            raise ProtocolDecodeError(f"Malformed header line: {line!r}")
        fields.append((name.strip(), value.strip()))

    headers = httpx.Headers(fields)
    length = _content_length(head)
    if len(rest) < length:
        raise ProtocolDecodeError(f"Truncated body: expected {length} bytes, got {len(rest)}")
    body = rest[:length] if "content-length" in headers else rest
    return start_line, headers, body


__all__ = [
    "MAX_HEAD_SIZE",
    "PROTOCOL_VERSION",
    "Request",
    "Response",
    "ResponseReader",
    "build_request",
    "parse_request",
    "parse_response",
]
