"""Config loader — reads YAML, applies LIVEWAGER_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from livewager_core.config.schema import AppConfig

# env var -> (section, field)
_ENV_OVERRIDES = {
    "LIVEWAGER_CREDENTIAL": ("provider", "credential"),
    "LIVEWAGER_PROXY_URL": ("provider", "proxy_url"),
    "LIVEWAGER_DATABASE_URL": ("database", "url"),
    "LIVEWAGER_LOG_LEVEL": ("logging", "level"),
    "LIVEWAGER_LOG_FORMAT": ("logging", "format"),
    "LIVEWAGER_ORACLE_API_KEY": ("oracle", "api_key"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        LIVEWAGER_CREDENTIAL      -> provider.credential
        LIVEWAGER_PROXY_URL       -> provider.proxy_url
        LIVEWAGER_DATABASE_URL    -> database.url
        LIVEWAGER_LOG_LEVEL       -> logging.level
        LIVEWAGER_LOG_FORMAT      -> logging.format
        LIVEWAGER_ORACLE_API_KEY  -> oracle.api_key
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for env_name, (section, field) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[field] = value

    return AppConfig.model_validate(data)
