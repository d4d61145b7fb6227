"""Request router deciding between the backend and the asset host."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, AsyncIterable, Mapping, Sequence, Union
from urllib.parse import urlsplit

from .asset_host import AssetHost
from .assets import ASSET_HOST_DEPENDENCY_PREFIX, ASSET_HOST_PREFIX, AssetConfig
from .dispatcher import ResultDispatcher
from .errors import UnhandledResultError
from .logger import LeveledLogger, LoggingLevel, LogSink
from .response import ResponseWriter
from .results import BackendHandler, BackendRequest, BypassPredicate, RequestHeaders

LOGGER = logging.getLogger(__name__)

RewriteRules = Union[Mapping[str, str], Sequence[tuple[str, str]]]

# Served by the asset host straight from source.
_SOURCE_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".css"}
BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class ProxyConfig:
    backend_base_url: str
    bypass: BypassPredicate
    backend_handler: BackendHandler
    asset_config: AssetConfig
    rewrites: RewriteRules | None = None
    debug: LoggingLevel | str | None = None


class BackendProxy:
    """Route one inbound request: rewrite, bypass or delegate, then dispatch."""

    def __init__(self, config: ProxyConfig, *, sink: LogSink | None = None) -> None:
        self._config = config
        self._logger = LeveledLogger(config.debug, sink)
        self._rewrites = tuple(self._rewrite_items(config.rewrites))
        self._dispatcher = ResultDispatcher(config.asset_config, self._logger)

    @property
    def config(self) -> ProxyConfig:
        return self._config

    def log(self, level: LoggingLevel | str, message: str, data: Any = None) -> None:
        self._logger.log(level, message, data)

    # ------------------------------- entry point -------------------------------
    async def handle_request(
        self,
        url: str,
        method: str | None,
        headers: RequestHeaders,
        body: AsyncIterable[bytes] | None,
        response: ResponseWriter,
        asset_host: AssetHost,
        request: Any = None,
    ) -> bool:
        """Answer *url* from the backend, or return False to let the host handle it."""
        method = (method or "GET").upper()
        current_url = self.apply_rewrites(url)

        if self.should_skip(current_url):
            self.log("debug", f"Asset host handles: {current_url}")
            return False

        try:
            payload = await self._read_body(body) if method in BODY_METHODS else None
            self.log("info", f"Proxying to backend [{method}] {current_url}")
            result = await self._config.backend_handler(
                BackendRequest(
                    url=current_url,
                    method=method,
                    headers=headers,
                    body=payload,
                    backend_base_url=self._config.backend_base_url,
                    logger=self.log,
                    request=request,
                )
            )
            handled = await self._dispatcher.dispatch(result, url, response, asset_host)
        except UnhandledResultError:
            raise
        except Exception as exc:  # noqa: BLE001
            self.log("error", f"Proxy error for: {url}", exc)
            self._send_error(response, exc)
            return True

        self.log("info", f"Done [{method}] {current_url} -> {response.status_code}")
        return handled

    # ------------------------------- routing decisions -------------------------------
    def apply_rewrites(self, url: str, *, quiet: bool = False) -> str:
        """Apply the first matching prefix rewrite, if any."""
        for prefix, replacement in self._rewrites:
            if url.startswith(prefix):
                rewritten = replacement + url[len(prefix):]
                if not quiet:
                    self.log("debug", f"Rewrite URL: {url} -> {rewritten}")
                return rewritten
        return url

    def should_skip(self, url: str) -> bool:
        """True when the request belongs to the asset host or the user bypass."""
        if self._config.bypass(url):
            return True
        if url.startswith((ASSET_HOST_PREFIX, ASSET_HOST_DEPENDENCY_PREFIX)):
            return True
        suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
        return suffix in _SOURCE_EXTENSIONS

    # ------------------------------- helpers -------------------------------
    @staticmethod
    async def _read_body(body: AsyncIterable[bytes] | None) -> bytes:
        if body is None:
            return b""
        chunks: list[bytes] = []
        async for chunk in body:
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _rewrite_items(rewrites: RewriteRules | None) -> list[tuple[str, str]]:
        if not rewrites:
            return []
        if isinstance(rewrites, Mapping):
            return list(rewrites.items())
        return [(prefix, replacement) for prefix, replacement in rewrites]

    @staticmethod
    def _send_error(response: ResponseWriter, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        if response.finished:
            LOGGER.warning("response already sent, dropping error: %s", message)
            return
        response.clear_headers()
        response.status_code = 500
        response.set_header("content-type", "text/plain")
        response.end(f"Proxy error: {message}")
