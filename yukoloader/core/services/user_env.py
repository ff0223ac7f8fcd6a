"""
User environment record.

Captures the user name and home directory the environment flake is
built for and writes them as a Nix attribute set next to the checkout:

    {
      userName = "yuko";
      homeDir  = "/home/yuko";
    }

The record is regenerated in full on every run; the last answer wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, field_validator

from yukoloader.core.context import HostContext
from yukoloader.core.services.prompts import Prompter

logger = logging.getLogger(__name__)


class EnvParams(BaseModel):
    """The two values the flake needs about its user."""

    user_name: str
    home_dir: str

    @field_validator("user_name", "home_dir")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


def default_params(ctx: HostContext) -> EnvParams:
    return EnvParams(user_name=ctx.user, home_dir=str(ctx.home))


def capture_params(prompter: Prompter, ctx: HostContext) -> EnvParams:
    """Ask for both values, pre-filled from the host identity."""
    defaults = default_params(ctx)
    user_name = prompter.ask("Username", defaults.user_name) or defaults.user_name
    home_dir = prompter.ask("Home directory", defaults.home_dir) or defaults.home_dir
    return EnvParams(user_name=user_name, home_dir=home_dir)


def nix_string(value: str) -> str:
    """Quote *value* as a Nix string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("${", "\\${")
        .replace("\n", "\\n")
    )
    return f'"{escaped}"'


def render_env_record(params: EnvParams) -> str:
    return (
        "{\n"
        f"  userName = {nix_string(params.user_name)};\n"
        f"  homeDir  = {nix_string(params.home_dir)};\n"
        "}\n"
    )


def write_env_record(path: Path, params: EnvParams) -> Path:
    """Write the record to *path*, replacing any previous one.

    Uses write-to-temp-then-rename so a crash never leaves half a file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".yuko-env_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_env_record(params))
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise

    logger.info("Written: %s", path)
    return path
