"""The asset dev server sitting behind the proxy.

The router only needs two things from it: a last look at generated HTML, and
somewhere to send every request the router declines.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import aiohttp
from aiohttp import web

from .path_utils import strip_trailing_slash

LOGGER = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-length",
    }
)


class AssetHost(Protocol):
    async def transform_index_html(self, url: str, html: str) -> str:
        ...

    async def forward(self, request: web.Request, path: str) -> web.StreamResponse:
        ...


class PassthroughAssetHost:
    """Asset host stand-in that leaves HTML alone and answers fall-through with 404."""

    async def transform_index_html(self, url: str, html: str) -> str:
        return html

    async def forward(self, request: web.Request, path: str) -> web.StreamResponse:
        return web.Response(status=404, text="Not Found")


class DevServerAssetHost(PassthroughAssetHost):
    """Forward unhandled requests to a running asset dev server over HTTP."""

    def __init__(self, base_url: str, *, timeout: float = 30.0) -> None:
        self._base_url = strip_trailing_slash(base_url)
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout, auto_decompress=False)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def forward(self, request: web.Request, path: str) -> web.StreamResponse:
        url = f"{self._base_url}{path}"
        headers = [(k, v) for k, v in request.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS and k.lower() != "host"]
        body = await request.read()
        session = await self._get_session()
        try:
            async with session.request(
                request.method,
                url,
                headers=headers,
                data=body or None,
                allow_redirects=False,
            ) as upstream:
                payload = await upstream.read()
                response = web.Response(status=upstream.status, body=payload)
                for key, value in upstream.headers.items():
                    if key.lower() not in HOP_BY_HOP_HEADERS:
                        response.headers.add(key, value)
                return response
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            LOGGER.warning("asset host request failed url=%s: %s", url, exc)
            return web.Response(status=502, text=f"Bad Gateway: asset host unavailable ({exc})")
