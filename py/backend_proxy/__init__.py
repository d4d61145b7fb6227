"""Dev proxy serving backend HTML with development assets injected."""

from .asset_host import AssetHost, DevServerAssetHost, PassthroughAssetHost
from .assets import AssetConfig, EntryPoints, inject_assets
from .config import DevProxySettings, build_proxy_config, load_config
from .errors import ConfigError, UnhandledResultError
from .http_client import (
    FetchError,
    TimeoutFetchError,
    create_fetch_backend_handler,
    extract_module_from_meta,
    extract_module_from_url,
)
from .http_server import DevHttpServer, create_app
from .logger import LeveledLogger, LoggingLevel
from .path_utils import (
    ensure_leading_slash,
    join_url_parts,
    normalize_redirect_location,
    strip_leading_slash,
    strip_trailing_slash,
)
from .response import ResponseWriter
from .results import BackendHandler, BackendRequest, BackendResult, BinaryResult, HtmlResult, RedirectResult
from .router import BackendProxy, ProxyConfig

__all__ = [
    "AssetHost",
    "DevServerAssetHost",
    "PassthroughAssetHost",
    "AssetConfig",
    "EntryPoints",
    "inject_assets",
    "DevProxySettings",
    "build_proxy_config",
    "load_config",
    "ConfigError",
    "UnhandledResultError",
    "FetchError",
    "TimeoutFetchError",
    "create_fetch_backend_handler",
    "extract_module_from_meta",
    "extract_module_from_url",
    "DevHttpServer",
    "create_app",
    "LeveledLogger",
    "LoggingLevel",
    "ensure_leading_slash",
    "join_url_parts",
    "normalize_redirect_location",
    "strip_leading_slash",
    "strip_trailing_slash",
    "ResponseWriter",
    "BackendHandler",
    "BackendRequest",
    "BackendResult",
    "BinaryResult",
    "HtmlResult",
    "RedirectResult",
    "BackendProxy",
    "ProxyConfig",
]
