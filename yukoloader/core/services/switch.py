"""
Declarative switch — apply the environment flake with home-manager.

Two invocation strategies reach the same ``home-manager switch``:

    primary: nix run home-manager/master -- switch --flake <ref>
    legacy:  nix-shell -p home-manager --run "home-manager switch --flake <ref>"

The primary one is probed with ``--version`` before the real call is
committed to.  This stage is best-effort: a host without a usable Nix
is skipped with a warning.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from yukoloader.core.errors import OptionalStageUnavailable
from yukoloader.core.services.probe import has_command

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)

Strategy = Literal["primary", "legacy"]

HOME_MANAGER = ["nix", "run", "home-manager/master", "--"]


def switch_argv(strategy: Strategy, flake_ref: str) -> list[str]:
    """The real apply command for *strategy*."""
    if strategy == "primary":
        return [*HOME_MANAGER, "switch", "--flake", flake_ref]
    inner = shlex.join(["home-manager", "switch", "--flake", flake_ref])
    return ["nix-shell", "-p", "home-manager", "--run", inner]


def select_strategy(runtime: StageRuntime, cwd: Path) -> Strategy:
    """Pick primary when it answers a cheap probe, else legacy.

    Raises:
        OptionalStageUnavailable: Nix is absent or unusable, or neither
            mechanism exists.
    """
    if not has_command(runtime.ctx, "nix"):
        raise OptionalStageUnavailable("nix command not found; cannot run home-manager.")

    if not runtime.run(["nix", "--version"], cwd=cwd).ok:
        raise OptionalStageUnavailable("Nix not usable in current shell; skipping home-manager invocation.")

    probe = runtime.run([*HOME_MANAGER, "--version"], cwd=cwd, timeout=runtime.settings.network_timeout)
    if probe.ok:
        return "primary"

    if not has_command(runtime.ctx, "nix-shell"):
        raise OptionalStageUnavailable("home-manager unavailable via nix run and nix-shell is missing.")
    return "legacy"


def apply_switch(runtime: StageRuntime, flake_ref: str, cwd: Path) -> Strategy:
    """Run ``home-manager switch --flake <flake_ref>`` from *cwd*.

    Returns:
        The strategy that was used.

    Raises:
        OptionalStageUnavailable: No mechanism, or the switch failed.
    """
    strategy = select_strategy(runtime, cwd)
    if strategy == "primary":
        logger.info("Using nix run home-manager to switch.")
    else:
        logger.info("Falling back to nix-shell invocation for home-manager.")

    receipt = runtime.run(switch_argv(strategy, flake_ref), cwd=cwd, interactive=True)
    if not receipt.ok:
        raise OptionalStageUnavailable(f"home-manager switch failed: {receipt.error}")
    return strategy
