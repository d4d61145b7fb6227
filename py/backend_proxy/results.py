"""Backend handler contract: the request context it receives and the results it may return."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence, Union

from .logger import LoggingLevel

HeaderValue = Union[str, Sequence[str]]
HeaderMap = Mapping[str, HeaderValue]
RequestHeaders = Mapping[str, Union[str, Sequence[str], None]]
LogCallback = Callable[..., None]


@dataclass(frozen=True)
class HtmlResult:
    """HTML document that gets development assets injected."""

    content: str
    module: str | None = None
    headers: HeaderMap | None = None


@dataclass(frozen=True)
class BinaryResult:
    """Any non-HTML body, passed through byte for byte."""

    content: bytes
    content_type: str
    status: int
    headers: HeaderMap | None = None


@dataclass(frozen=True)
class RedirectResult:
    status: int
    location: str
    headers: HeaderMap | None = None


BackendResult = Union[HtmlResult, BinaryResult, RedirectResult]


@dataclass(frozen=True)
class BackendRequest:
    """Everything a backend handler gets to know about one inbound request."""

    url: str
    method: str
    headers: RequestHeaders
    body: bytes | None
    backend_base_url: str
    logger: LogCallback
    request: Any = None

    def log(self, level: LoggingLevel | str, message: str, data: Any = None) -> None:
        self.logger(level, message, data)


BackendHandler = Callable[[BackendRequest], Awaitable[BackendResult]]
BypassPredicate = Callable[[str], bool]


def iter_header_values(value: HeaderValue | None) -> list[str]:
    """Flatten a single or multi-valued header into a list of strings."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value.decode("latin-1") if isinstance(value, bytes) else value]
    return [str(item) for item in value]
