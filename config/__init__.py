"""Deployment settings, one module per environment, picked by APP_ENV."""

import os
from typing import Optional

DEFAULT_ENV = "development"

_SETTINGS_MODULES = {
    "development": "config.development",
    "dev": "config.development",
    "production": "config.production",
    "prod": "config.production",
    "testing": "config.testing",
    "test": "config.testing",
}


def get_settings_module(env: Optional[str] = None) -> str:
    """Dotted module path for `env`, or for APP_ENV when not given.

    Unknown names fall back to development settings.
    """
    name = (env or os.getenv("APP_ENV") or DEFAULT_ENV).strip().lower()
    return _SETTINGS_MODULES.get(name, _SETTINGS_MODULES[DEFAULT_ENV])
