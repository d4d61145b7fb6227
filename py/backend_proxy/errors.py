"""Exception types shared across the proxy package."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""


class UnhandledResultError(TypeError):
    """Raised when a backend handler returns something that is not a BackendResult."""

    def __init__(self, payload: object) -> None:
        super().__init__(f"Unhandled result type: {payload!r}")
        self.payload = payload
