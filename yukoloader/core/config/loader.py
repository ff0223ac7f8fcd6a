"""
Configuration loader — reads the bootstrap YAML into BootstrapSettings.

The file is optional.  Without one every setting keeps its built-in
default; with one, any subset of fields can be overridden:

    repo_ssh: git@github.com:me/.yuko.git
    repo_https: https://github.com/me/.yuko.git
    tmux_session: work
    network_timeout: 600
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from yukoloader.core.context import HostContext
from yukoloader.core.errors import ConfigError
from yukoloader.core.models.settings import BootstrapSettings

__all__ = ["ConfigError", "default_config_path", "load_settings"]

logger = logging.getLogger(__name__)

CONFIG_DIR = "yukoloader"
CONFIG_FILE = "config.yml"


def default_config_path(ctx: HostContext) -> Path:
    """``<config-root>/yukoloader/config.yml``."""
    return ctx.config_root / CONFIG_DIR / CONFIG_FILE


def load_settings(path: Path | None = None, ctx: HostContext | None = None) -> BootstrapSettings:
    """Load and validate bootstrap settings.

    Args:
        path: Explicit config file. Must exist when given.
        ctx: Host context used to find the default file when *path*
            is None.

    Returns:
        Validated BootstrapSettings (defaults when no file exists).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = default_config_path(ctx or HostContext.from_environ())

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("No config at %s; using defaults", path)
        return BootstrapSettings()

    logger.debug("Loading bootstrap config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return BootstrapSettings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = BootstrapSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid bootstrap configuration in {path}: {e}") from e

    logger.info("Loaded bootstrap config from %s", path)
    return settings
