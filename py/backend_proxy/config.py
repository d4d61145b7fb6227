"""Configuration loader for the dev proxy."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import tomllib

from .assets import AssetConfig, EntryPoints
from .errors import ConfigError
from .http_client import (
    DEFAULT_META_NAME,
    DEFAULT_TIMEOUT,
    create_fetch_backend_handler,
    extract_module_from_meta,
    extract_module_from_url,
)
from .logger import parse_level
from .router import ProxyConfig


@dataclass(frozen=True)
class BackendSettings:
    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    module_meta: str = DEFAULT_META_NAME
    module_header: str | None = None
    module_url_pattern: str | None = None


@dataclass(frozen=True)
class AssetSettings:
    global_js: str | None = None
    global_css: str | None = None
    module_js: str | None = None
    module_css: str | None = None


@dataclass(frozen=True)
class DevProxySettings:
    listen_host: str
    listen_port: int
    log_level: str | None
    backend: BackendSettings
    asset_host_url: str
    assets: AssetSettings
    bypass_prefixes: tuple[str, ...] = ()
    rewrites: tuple[tuple[str, str], ...] = field(default_factory=tuple)


def load_config(path: str | Path) -> DevProxySettings:
    data = _read_toml(path)

    server_data = _section(data, "server")
    listen_host = _require_str(server_data, "listen_host", default="127.0.0.1")
    listen_port = _require_port(server_data, "listen_port", default=5173)
    log_level = _optional_str(server_data, "log_level")
    if log_level is not None:
        log_level = parse_level(log_level, what="server.log_level").value

    backend_data = _section(data, "backend")
    module_url_pattern = _optional_str(backend_data, "module_url_pattern")
    if module_url_pattern is not None:
        try:
            re.compile(module_url_pattern)
        except re.error as exc:
            raise ConfigError(f"module_url_pattern is not a valid regular expression: {exc}") from exc
    backend = BackendSettings(
        base_url=_require_url(backend_data, "base_url"),
        timeout=_require_float(backend_data, "timeout", default=DEFAULT_TIMEOUT),
        module_meta=_require_str(backend_data, "module_meta", default=DEFAULT_META_NAME),
        module_header=_optional_str(backend_data, "module_header"),
        module_url_pattern=module_url_pattern,
    )

    asset_host_data = _section(data, "asset_host")
    asset_host_url = _require_url(asset_host_data, "url", default="http://127.0.0.1:5174")

    assets_data = _section(data, "assets")
    assets = AssetSettings(
        global_js=_optional_str(assets_data, "global_js"),
        global_css=_optional_str(assets_data, "global_css"),
        module_js=_optional_str(assets_data, "module_js"),
        module_css=_optional_str(assets_data, "module_css"),
    )

    bypass_data = _section(data, "bypass")
    bypass_prefixes = _require_str_list(bypass_data, "prefixes")

    rewrites_data = _section(data, "rewrites")
    rewrites = []
    for prefix, replacement in rewrites_data.items():
        if not isinstance(replacement, str):
            raise ConfigError(f"rewrites.{prefix} must be a string")
        rewrites.append((prefix, replacement))

    return DevProxySettings(
        listen_host=listen_host,
        listen_port=listen_port,
        log_level=log_level,
        backend=backend,
        asset_host_url=asset_host_url,
        assets=assets,
        bypass_prefixes=bypass_prefixes,
        rewrites=tuple(rewrites),
    )


def build_proxy_config(settings: DevProxySettings) -> ProxyConfig:
    """Turn file settings into the runtime ProxyConfig."""
    backend = settings.backend
    url_pattern = re.compile(backend.module_url_pattern) if backend.module_url_pattern else None

    def extract_module(url: str, html: str, headers: Mapping[str, str]) -> str | None:
        module = extract_module_from_meta(html, backend.module_meta)
        if module:
            return module
        if backend.module_header:
            module = headers.get(backend.module_header)
            if module:
                return module
        if url_pattern is not None:
            module = extract_module_from_url(url, url_pattern)
            if module:
                return module.lower().replace("_", "-")
        return None

    assets = settings.assets

    def get_module_entry_points(module: str) -> EntryPoints:
        return EntryPoints(
            js=assets.module_js.format(module=module) if assets.module_js else None,
            css=assets.module_css.format(module=module) if assets.module_css else None,
        )

    prefixes = settings.bypass_prefixes

    def bypass(url: str) -> bool:
        return bool(prefixes) and url.startswith(prefixes)

    return ProxyConfig(
        backend_base_url=backend.base_url,
        bypass=bypass,
        backend_handler=create_fetch_backend_handler(extract_module=extract_module, timeout=backend.timeout),
        asset_config=AssetConfig(
            global_entry_points=EntryPoints(js=assets.global_js, css=assets.global_css),
            get_module_entry_points=get_module_entry_points,
        ),
        rewrites=settings.rewrites,
        debug=settings.log_level,
    )


def _read_toml(path: str | Path) -> dict[str, Any]:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise ConfigError(f"configuration file not found: {cfg_path}")
    with cfg_path.open("rb") as fh:
        try:
            return tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {cfg_path}: {exc}") from exc


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _require_str(data: dict[str, Any], key: str, *, default: str | None = None) -> str:
    if key not in data:
        if default is None:
            raise ConfigError(f"{key} is required")
        return default
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string")
    return value.strip()


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    if key not in data:
        return None
    return _require_str(data, key)


def _require_url(data: dict[str, Any], key: str, *, default: str | None = None) -> str:
    value = _require_str(data, key, default=default)
    if not value.startswith(("http://", "https://")):
        raise ConfigError(f"{key} must be an http:// or https:// URL")
    return value.rstrip("/")


def _require_port(data: dict[str, Any], key: str, *, default: int | None = None) -> int:
    if key not in data:
        if default is None:
            raise ConfigError(f"{key} is required")
        return default
    try:
        port = int(data[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer") from exc
    if not (1 <= port <= 65535):
        raise ConfigError(f"{key} must be between 1 and 65535")
    return port


def _require_float(data: dict[str, Any], key: str, *, default: float | None = None) -> float:
    if key not in data:
        if default is None:
            raise ConfigError(f"{key} is required")
        return default
    try:
        value = float(data[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be greater than 0")
    return value


def _require_str_list(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigError(f"{key} must be a list of non-empty strings")
    return tuple(value)
