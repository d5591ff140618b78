"""Layered configuration: YAML < .env < CLI args."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
MAX_UPLOAD_BYTES = 2 * 1024 * 1024

ENV_MAPPINGS: dict[str, tuple[str, ...]] = {
    "WEB_ROOT": ("web_root",),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FILE": ("logging", "file"),
    "SECRET_KEY": ("secret_key",),
    "HOST": ("host",),
    "PORT": ("port",),
    "DEBUG": ("debug",),
}


def load_config(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load configuration with layered precedence.

    Priority (highest to lowest):
    1. CLI argument overrides
    2. Environment variables (.env)
    3. YAML config file

    Args:
        config_path: Path to YAML config file. Defaults to config/default.yaml
        cli_overrides: Dict of CLI argument overrides (e.g. {"port": 8080})

    Returns:
        Merged configuration dict.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

    load_dotenv()
    for env_var, keys in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value:
            _set_nested(config, keys, value)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config


def resolve_web_root(config: dict[str, Any] | None) -> Path:
    """Return the configured web root, or ``<cwd>/wwwroot`` when unset."""
    web_root = (config or {}).get("web_root")
    if web_root is None or not str(web_root).strip():
        return Path.cwd() / "wwwroot"
    return Path(web_root)


def _set_nested(d: dict, keys: tuple[str, ...], value: Any) -> None:
    """Set a value in a nested dict using a tuple of keys."""
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value
