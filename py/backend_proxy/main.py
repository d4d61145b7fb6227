"""CLI entry point for the dev proxy."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .asset_host import DevServerAssetHost
from .config import ConfigError, build_proxy_config, load_config
from .http_server import DevHttpServer
from .logger import configure_logging
from .router import BackendProxy

DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "conf" / "dev_proxy.toml"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backend HTML dev proxy")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG),
        help="Path to dev proxy configuration (default: conf/dev_proxy.toml)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    try:
        settings = load_config(args.config)
        proxy = BackendProxy(build_proxy_config(settings))
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging("DEBUG" if settings.log_level == "debug" else "INFO")
    proxy.log("info", "Backend proxy configured", {"backendBaseUrl": settings.backend.base_url})
    asset_host = DevServerAssetHost(settings.asset_host_url, timeout=settings.backend.timeout)
    server = DevHttpServer(settings.listen_host, settings.listen_port, proxy, asset_host)
    print(f"Dev proxy listening on http://{settings.listen_host}:{settings.listen_port}")
    server.serve_forever()


if __name__ == "__main__":
    main()
