"""Write-once response buffer the router fills for the host server."""

from __future__ import annotations

from multidict import CIMultiDict

from .results import HeaderValue, iter_header_values


class ResponseAlreadySentError(RuntimeError):
    """Raised when a response is ended twice."""


class ResponseWriter:
    """Collects status, headers and body; ``end()`` may be called once.

    Headers are kept in a case-insensitive multidict so that repeated headers
    such as ``Set-Cookie`` stay separate entries.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.headers: CIMultiDict[str] = CIMultiDict()
        self.body = b""
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def set_header(self, name: str, value: HeaderValue) -> None:
        """Replace *name* with one entry per value."""
        self.headers.popall(name, None)
        for item in iter_header_values(value):
            self.headers.add(name, item)

    def clear_headers(self) -> None:
        self.headers.clear()

    def end(self, body: bytes | str = b"") -> None:
        if self._finished:
            raise ResponseAlreadySentError("response already sent")
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        self._finished = True
