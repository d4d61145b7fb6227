"""Swap a backend page's production bundle for the dev server's entry points."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

# Paths owned by the asset host; never proxied to the backend.
ASSET_HOST_PREFIX = "/@"
ASSET_HOST_DEPENDENCY_PREFIX = "/node_modules/"
CLIENT_ENTRY_POINT = "/@vite/client"

PRODUCTION_ASSET_PREFIXES = ("/assets/", "/q/p/")


@dataclass(frozen=True)
class EntryPoints:
    js: str | None = None
    css: str | None = None


def _no_module_entry_points(module: str) -> EntryPoints:
    return EntryPoints()


@dataclass(frozen=True)
class AssetConfig:
    """Global entry points plus a resolver for per-module entry points."""

    global_entry_points: EntryPoints = field(default_factory=EntryPoints)
    get_module_entry_points: Callable[[str], EntryPoints] = _no_module_entry_points


_PREFIX_ALT = "|".join(re.escape(prefix) for prefix in PRODUCTION_ASSET_PREFIXES)
_PRODUCTION_LINK = re.compile(
    r"<link\s[^>]*(?<![\w-])href\s*=\s*([\"'])(?:" + _PREFIX_ALT + r")[^\"']+\1[^>]*>",
    re.IGNORECASE,
)
_PRODUCTION_SCRIPT = re.compile(
    r"<script\s[^>]*(?<![\w-])src\s*=\s*([\"'])(?:" + _PREFIX_ALT + r")[^\"']+\1[^>]*>\s*</script\s*>",
    re.IGNORECASE,
)
_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)
_BODY_OPEN = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)


def render_entry_points(entry_points: EntryPoints) -> list[str]:
    """Return the tags for *entry_points*, stylesheet first."""
    tags: list[str] = []
    if entry_points.css:
        tags.append(f'<link rel="stylesheet" href="{entry_points.css}">')
    if entry_points.js:
        tags.append(f'<script type="module" src="{entry_points.js}"></script>')
    return tags


def build_injection(module: str | None, asset_config: AssetConfig) -> list[str]:
    injection = render_entry_points(EntryPoints(js=CLIENT_ENTRY_POINT))
    injection.extend(render_entry_points(asset_config.global_entry_points))
    if module:
        injection.extend(render_entry_points(asset_config.get_module_entry_points(module)))
    return injection


def strip_production_assets(html: str) -> str:
    html = _PRODUCTION_LINK.sub("", html)
    return _PRODUCTION_SCRIPT.sub("", html)


def inject_assets(html: str, module: str | None, asset_config: AssetConfig) -> str:
    """Strip production asset tags from *html* and insert the development ones.

    Tags go right before ``</head>`` when present, otherwise right after the
    opening ``<body>`` tag, otherwise at the very start of the document.
    """
    snippet = "\n".join(build_injection(module, asset_config))
    processed = strip_production_assets(html)

    head_close = _HEAD_CLOSE.search(processed)
    if head_close:
        at = head_close.start()
        return f"{processed[:at]}{snippet}\n{processed[at:]}"

    body_open = _BODY_OPEN.search(processed)
    if body_open:
        at = body_open.end()
        return f"{processed[:at]}\n{snippet}{processed[at:]}"

    return snippet + processed
