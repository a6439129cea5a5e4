"""Public API for shared Bookkeeper configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    BookkeeperSettings,
    ComponentsSettings,
    CoreBootSettings,
    LoggingSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "BookkeeperSettings",
    "ComponentsSettings",
    "CoreBootSettings",
    "LoggingSettings",
    "load_settings",
    "resolve_component_settings",
]
