"""
Session launcher — hand the terminal over to tmux.

Produces the argv the process should be replaced with; the caller
performs the exec once the run has been recorded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from yukoloader.core.errors import BootstrapError, OptionalStageUnavailable
from yukoloader.core.services.probe import command_path, command_probe
from yukoloader.core.services.remediation import (
    nix_profile_candidate,
    package_manager_candidates,
    remediate,
)

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)


def session_argv(tmux: str, name: str) -> list[str]:
    """Attach to session *name*, creating it when absent."""
    return [tmux, "new", "-A", "-s", name]


def ensure_multiplexer(runtime: StageRuntime) -> str:
    """Path to tmux, installing it first when missing.

    Raises:
        OptionalStageUnavailable: tmux could not be installed.
    """
    tmux = command_path(runtime.ctx, "tmux")
    if tmux:
        logger.info("tmux available.")
        return tmux

    logger.info("tmux not found; installing.")
    try:
        remediate(
            runtime,
            command_probe("tmux"),
            [nix_profile_candidate("tmux"), *package_manager_candidates("tmux")],
            label="tmux",
        )
    except BootstrapError as e:
        raise OptionalStageUnavailable(
            f"tmux still not available ({e}); finishing without a session."
        ) from e

    tmux = command_path(runtime.ctx, "tmux")
    if not tmux:
        raise OptionalStageUnavailable("tmux still not available; finishing without a session.")
    return tmux


def launch_session(runtime: StageRuntime, name: str) -> list[str] | None:
    """Return the handoff argv, or None when the operator declines."""
    tmux = ensure_multiplexer(runtime)
    if not runtime.prompter.confirm(f"Start (or attach to) tmux session '{name}' now?"):
        logger.info("Skipping tmux start as requested.")
        return None
    logger.info("Attaching to tmux session...")
    return session_argv(tmux, name)
