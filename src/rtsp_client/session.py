"""Session state shared by the playback commands."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import NotConnectedError, SessionNotSetError

AGGREGATE_CONTROL = "*"


@dataclass
class SessionState:
    url: str | None = None
    session_id: str | None = None

    def require_session(self) -> str:
        if not self.session_id:
            raise SessionNotSetError("SessionId not set")
        return self.session_id

    def resolve(self, control: str) -> str:
        """Build a SETUP target from a media-level control attribute."""
        if self.url is None:
            raise NotConnectedError("Target URL not set")
        if not control or control == AGGREGATE_CONTROL:
            return self.url
        if urlsplit(control).scheme:
            return control

        # urljoin only merges paths for schemes it knows, so join scheme-less
        base = urlsplit(self.url)
        path = base.path if base.path.endswith("/") else f"{base.path}/"
        joined = urljoin(urlunsplit(("", base.netloc, path, base.query, "")), control)
        return f"{base.scheme}:{joined}" if base.scheme else joined


__all__ = ["AGGREGATE_CONTROL", "SessionState"]
