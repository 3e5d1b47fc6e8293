"""YAML config loader — reads hroas.yml into ServiceConfig."""

import os
from pathlib import Path

import yaml

from hroas.schemas.config import ServiceConfig
from hroas.shared.errors import ConfigurationError


def load_config(path: str | Path | None = None) -> ServiceConfig:
    """Load and validate a service config file.

    With no path, returns the defaults.  Raises ``FileNotFoundError`` if the
    path doesn't exist and ``pydantic.ValidationError`` if the YAML content
    is invalid.
    """
    if path is None:
        return ServiceConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        # Empty file (or only comments) means "all defaults".
        return ServiceConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    return ServiceConfig(**raw)


def read_api_keys(config: ServiceConfig) -> tuple[str, str]:
    """Return (analysis_key, strategy_key) from the process environment.

    Read at request time so a key rotated in the environment takes effect
    on the next request.
    """
    analysis_key = os.environ.get(config.analysis_api_key_env, "").strip()
    strategy_key = os.environ.get(config.strategy_api_key_env, "").strip()
    if not analysis_key or not strategy_key:
        raise ConfigurationError("API keys are not configured")
    return analysis_key, strategy_key
