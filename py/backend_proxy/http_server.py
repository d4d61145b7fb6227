"""aiohttp server putting the backend proxy in front of the asset dev server."""

from __future__ import annotations

import logging

from aiohttp import web
from multidict import CIMultiDict

from .asset_host import AssetHost, DevServerAssetHost, PassthroughAssetHost
from .response import ResponseWriter
from .router import BackendProxy

LOGGER = logging.getLogger(__name__)

PROXY_KEY = web.AppKey("proxy", BackendProxy)
ASSET_HOST_KEY = web.AppKey("asset_host", AssetHost)

BODY_CHUNK_SIZE = 64 * 1024


async def _handle(request: web.Request) -> web.StreamResponse:
    proxy = request.app[PROXY_KEY]
    asset_host = request.app[ASSET_HOST_KEY]
    writer = ResponseWriter()
    try:
        handled = await proxy.handle_request(
            str(request.rel_url),
            request.method,
            request.headers,
            request.content.iter_chunked(BODY_CHUNK_SIZE) if request.can_read_body else None,
            writer,
            asset_host,
            request=request,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("unhandled error for %s %s", request.method, request.rel_url)
        return web.Response(status=500, text=f"Internal Server Error: {exc}")

    if not handled:
        return await asset_host.forward(request, proxy.apply_rewrites(str(request.rel_url), quiet=True))
    return to_web_response(writer)


def to_web_response(writer: ResponseWriter) -> web.Response:
    return web.Response(status=writer.status_code, body=writer.body, headers=CIMultiDict(writer.headers))


def create_app(proxy: BackendProxy, asset_host: AssetHost | None = None) -> web.Application:
    app = web.Application()
    app[PROXY_KEY] = proxy
    app[ASSET_HOST_KEY] = asset_host or PassthroughAssetHost()
    app.router.add_route("*", "/{path_info:.*}", _handle)

    async def _close_asset_host(app: web.Application) -> None:
        host = app[ASSET_HOST_KEY]
        if isinstance(host, DevServerAssetHost):
            await host.close()

    app.on_cleanup.append(_close_asset_host)
    return app


class DevHttpServer:
    """Small wrapper around ``web.run_app`` with router integration."""

    def __init__(self, host: str, port: int, proxy: BackendProxy, asset_host: AssetHost | None = None) -> None:
        self._host = host
        self._port = port
        self._app = create_app(proxy, asset_host)

    @property
    def app(self) -> web.Application:
        return self._app

    def serve_forever(self) -> None:
        try:
            web.run_app(self._app, host=self._host, port=self._port, print=None)
        except KeyboardInterrupt:
            pass
