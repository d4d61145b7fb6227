"""Turn a BackendResult into the outbound response."""

from __future__ import annotations

from .asset_host import AssetHost
from .assets import AssetConfig, inject_assets
from .errors import UnhandledResultError
from .logger import LeveledLogger, LoggingLevel
from .response import ResponseWriter
from .results import BackendResult, BinaryResult, HtmlResult, RedirectResult

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class ResultDispatcher:
    def __init__(self, asset_config: AssetConfig, logger: LeveledLogger) -> None:
        self._asset_config = asset_config
        self._logger = logger

    async def dispatch(self, result: BackendResult, url: str, response: ResponseWriter, asset_host: AssetHost) -> bool:
        """Write *result* to *response*. Always returns True."""
        if not isinstance(result, (HtmlResult, BinaryResult, RedirectResult)):
            raise UnhandledResultError(result)

        # forwarded backend headers (e.g. set-cookie) go first
        if result.headers:
            for key, value in result.headers.items():
                response.set_header(key, value)

        if isinstance(result, HtmlResult):
            await self._send_html(result, url, response, asset_host)
        elif isinstance(result, BinaryResult):
            self._logger.info(
                f"-> Binary response: status={result.status}, contentType={result.content_type}, length={len(result.content)}"
            )
            response.status_code = result.status
            response.set_header("content-type", result.content_type)
            response.end(result.content)
        else:
            self._logger.info(f"-> Redirect response: status={result.status}, location={result.location}")
            response.status_code = result.status
            response.set_header("location", result.location)
            response.end()
        return True

    async def _send_html(self, result: HtmlResult, url: str, response: ResponseWriter, asset_host: AssetHost) -> None:
        self._logger.info(f"-> HTML response: length={len(result.content)}")
        if self._logger.enabled_for(LoggingLevel.DEBUG):
            separator = "-" * 80
            self._logger.debug(separator)
            self._logger.debug(result.content)
            self._logger.debug(separator)

        html = inject_assets(result.content, result.module, self._asset_config)
        response.status_code = 200
        response.set_header("content-type", HTML_CONTENT_TYPE)
        html = await asset_host.transform_index_html(url, html)
        response.end(html)
