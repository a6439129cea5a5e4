"""Settings loading entrypoint with an overridable YAML location.

The cascade is always:
1) explicit overrides passed by the caller
2) ``BOOKKEEPER_``-prefixed environment variables (``__`` nests keys)
3) ``~/.config/bookkeeper/bookkeeper.yaml`` or ``BOOKKEEPER_CONFIG_PATH``
4) model defaults

Example: ``BOOKKEEPER_LOGGING__LEVEL=DEBUG`` sets ``logging.level``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar

from .models import DEFAULT_CONFIG_PATH, BookkeeperSettings

CONFIG_PATH_ENV = "BOOKKEEPER_CONFIG_PATH"


def load_settings(
    *,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> BookkeeperSettings:
    """Load validated settings, reading YAML from the resolved config path."""
    resolved = _resolve_config_path(config_path)

    class _PathBoundSettings(BookkeeperSettings):
        _config_path: ClassVar[Path] = resolved

    return _PathBoundSettings(**overrides)


def _resolve_config_path(config_path: str | Path | None) -> Path:
    """Pick explicit path, then env override, then the default location."""
    if config_path is not None:
        return Path(config_path)
    from_env = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG_PATH
