"""aiohttp-based backend handler.

Forwards the inbound request to the backend without following redirects and
classifies the answer into one of the three BackendResult variants.
"""

from __future__ import annotations

import asyncio
import inspect
import re
from typing import Awaitable, Callable, Mapping, Union
from urllib.parse import urlsplit

import aiohttp
from multidict import CIMultiDict

from .path_utils import normalize_redirect_location, strip_trailing_slash
from .results import (
    BackendHandler,
    BackendRequest,
    BackendResult,
    BinaryResult,
    HtmlResult,
    RedirectResult,
    RequestHeaders,
    iter_header_values,
)

DEFAULT_TIMEOUT = 30.0
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_META_NAME = "vite-module"

# Not forwarded to the backend; aiohttp manages framing and Host itself.
SKIPPED_REQUEST_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
    }
)

ModuleExtractor = Callable[[str, str, Mapping[str, str]], Union[str, None, Awaitable[Union[str, None]]]]
UrlTransformer = Callable[[str, str], str]


class FetchError(Exception):
    """Base error for backend fetch failures."""


class TimeoutFetchError(FetchError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"no response from backend within {timeout} seconds")


def build_forward_headers(headers: RequestHeaders) -> CIMultiDict[str]:
    """Copy inbound headers for the backend, keeping repeated values separate."""
    forwarded: CIMultiDict[str] = CIMultiDict()
    for key, value in headers.items():
        if key.lower() in SKIPPED_REQUEST_HEADERS:
            continue
        for item in iter_header_values(value):
            forwarded.add(key, item)
    return forwarded


def create_fetch_backend_handler(
    *,
    extract_module: ModuleExtractor | None = None,
    transform_backend_url: UrlTransformer | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    session: aiohttp.ClientSession | None = None,
) -> BackendHandler:
    """Build a backend handler that fetches from ``backend_base_url``.

    Args:
        extract_module: called with ``(url, html, response_headers)`` for
            successful HTML responses; may return the module name directly or
            an awaitable resolving to it.
        transform_backend_url: maps ``(url, backend_base_url)`` to the URL to
            fetch. Defaults to plain concatenation.
        timeout: total seconds allowed for one backend request.
        session: optional shared ClientSession, left open by the handler;
            one is created per request otherwise. *timeout* applies either way.
    """

    timeout_cfg = aiohttp.ClientTimeout(total=timeout)

    async def handler(ctx: BackendRequest) -> BackendResult:
        if transform_backend_url is not None:
            backend_url = transform_backend_url(ctx.url, ctx.backend_base_url)
        else:
            backend_url = f"{ctx.backend_base_url}{ctx.url}"
        ctx.log("debug", f'backendBaseUrl="{ctx.backend_base_url}" args.url="{ctx.url}" url="{backend_url}"')

        async def _do(session_obj: aiohttp.ClientSession) -> BackendResult:
            try:
                async with session_obj.request(
                    ctx.method,
                    backend_url,
                    headers=build_forward_headers(ctx.headers),
                    data=ctx.body if ctx.body is not None else None,
                    allow_redirects=False,
                    timeout=timeout_cfg,
                ) as resp:
                    return await _classify(ctx, resp, extract_module)
            except asyncio.TimeoutError as exc:
                raise TimeoutFetchError(timeout) from exc
            except aiohttp.ClientError as exc:
                raise FetchError(f"{exc.__class__.__name__}: {exc}") from exc

        if session is not None:
            return await _do(session)
        async with aiohttp.ClientSession(timeout=timeout_cfg) as owned_session:
            return await _do(owned_session)

    return handler


async def _classify(
    ctx: BackendRequest,
    resp: aiohttp.ClientResponse,
    extract_module: ModuleExtractor | None,
) -> BackendResult:
    status = resp.status
    ctx.log("debug", "fetch results", {"ok": resp.ok, "status": status, "reason": resp.reason})
    content_type = resp.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)

    response_headers: dict[str, list[str]] = {}
    set_cookie = resp.headers.getall("Set-Cookie", [])
    if set_cookie:
        ctx.log("debug", f'setCookie="{", ".join(set_cookie)}"')
        response_headers["set-cookie"] = list(set_cookie)

    if 300 <= status < 400:
        raw_location = resp.headers.get("Location")
        if not raw_location:
            raise FetchError(f"Redirect {status} missing Location header")
        base_path = _segment_prefix(urlsplit(ctx.backend_base_url).path)
        location = normalize_redirect_location(raw_location, base_path)
        ctx.log("debug", f'redirect="{location}"')
        return RedirectResult(status=status, location=location, headers=response_headers)

    if "text/html" in content_type:
        html = await resp.text(errors="replace")
        module = None
        if resp.ok and extract_module is not None:
            module = await _maybe_await(extract_module(ctx.url, html, resp.headers))
        ctx.log("debug", f'extracted module "{module}"')
        return HtmlResult(content=html, module=module or None, headers=response_headers)

    return BinaryResult(
        content=await resp.read(),
        content_type=content_type,
        status=status,
        headers=response_headers,
    )


def _segment_prefix(path: str) -> str:
    """Mount path with one trailing slash so stripping stops at a segment boundary."""
    return strip_trailing_slash(path) + "/"


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


def extract_module_from_meta(html: str, meta_name: str = DEFAULT_META_NAME) -> str | None:
    """Return the ``content`` of ``<meta name="{meta_name}" content="...">``."""
    pattern = re.compile(rf'<meta name="{re.escape(meta_name)}" content="([^"]+)">')
    match = pattern.search(html)
    return match.group(1) if match else None


def extract_module_from_url(url: str, pattern: str | re.Pattern[str]) -> str | None:
    """Return the first capture group of *pattern* searched in *url*."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    match = compiled.search(url)
    return match.group(1) if match else None

