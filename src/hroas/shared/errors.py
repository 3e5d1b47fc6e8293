"""Exception types surfaced by the strategy pipeline."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A required secret or setting is missing for the current request."""


class UpstreamServiceError(RuntimeError):
    """An AI completion service answered with a non-success status or no choices."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StrategyParseError(ValueError):
    """The final strategy payload could not be parsed."""
