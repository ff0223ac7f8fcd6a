"""
Remediation selector — install a missing capability.

Candidates are tried in declared priority order.  A candidate is only
attempted when its detector matches the host (its package manager is
installed).  After each attempt the original capability is re-probed;
the first candidate that makes it pass wins.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING

from yukoloader.core.errors import NoRemediationAvailable, RemediationIneffective
from yukoloader.core.models.stage import Probe
from yukoloader.core.services.probe import command_probe

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemediationCandidate:
    """One way of installing something: detector + install commands."""

    name: str
    detector: Probe
    commands: tuple[tuple[str, ...], ...]
    needs_sudo: bool = False


def package_manager_candidates(package: str) -> list[RemediationCandidate]:
    """System package managers in priority order: apt, dnf, pacman."""
    return [
        RemediationCandidate(
            name="apt",
            detector=command_probe("apt"),
            commands=(("apt", "update"), ("apt", "install", "-y", package)),
            needs_sudo=True,
        ),
        RemediationCandidate(
            name="dnf",
            detector=command_probe("dnf"),
            commands=(("dnf", "install", "-y", package),),
            needs_sudo=True,
        ),
        RemediationCandidate(
            name="pacman",
            detector=command_probe("pacman"),
            commands=(("pacman", "-Sy", "--noconfirm", package),),
            needs_sudo=True,
        ),
    ]


def nix_profile_candidate(attribute: str) -> RemediationCandidate:
    """Install ``nixpkgs#<attribute>`` into the user's Nix profile."""
    return RemediationCandidate(
        name="nix",
        detector=command_probe("nix"),
        commands=(("nix", "profile", "install", f"nixpkgs#{attribute}"),),
    )


def _install(runtime: StageRuntime, candidate: RemediationCandidate) -> bool:
    for command in candidate.commands:
        argv = list(command)
        if candidate.needs_sudo and not runtime.ctx.is_root:
            argv = ["sudo", *argv]
        receipt = runtime.run(argv, interactive=True)
        if not receipt.ok:
            logger.warning("%s failed: %s", shlex.join(argv), receipt.error)
            return False
    return True


def remediate(
    runtime: StageRuntime,
    target: Probe,
    candidates: list[RemediationCandidate],
    *,
    label: str,
) -> str:
    """Install *label* with the first working candidate.

    Returns:
        Name of the candidate that satisfied *target*.

    Raises:
        NoRemediationAvailable: No candidate's detector matched.
        RemediationIneffective: Every matching candidate was tried and
            *target* still fails.
    """
    attempted: list[str] = []

    for candidate in candidates:
        if not candidate.detector(runtime.ctx):
            logger.debug("Remediation %s not available for %s", candidate.name, label)
            continue

        attempted.append(candidate.name)
        sudo_note = " (requires sudo)" if candidate.needs_sudo and not runtime.ctx.is_root else ""
        logger.info("Attempting to install %s with %s%s...", label, candidate.name, sudo_note)

        if not _install(runtime, candidate):
            logger.warning("Installing %s with %s failed", label, candidate.name)
            continue

        if target(runtime.ctx):
            logger.info("Installed %s with %s", label, candidate.name)
            return candidate.name

        logger.warning("%s finished but %s is still not available", candidate.name, label)

    if not attempted:
        names = ", ".join(c.name for c in candidates) or "none"
        raise NoRemediationAvailable(
            f"No supported installer detected for {label} (looked for: {names}). "
            f"Please install {label} manually and re-run."
        )
    raise RemediationIneffective(
        f"Failed to install {label} (tried: {', '.join(attempted)})"
    )
