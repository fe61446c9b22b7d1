"""Public API for shared Newsdesk configuration utilities."""

from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    NewsdeskSettings,
    load_settings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "NewsdeskSettings",
    "load_settings",
    "resolve_component_settings",
]
