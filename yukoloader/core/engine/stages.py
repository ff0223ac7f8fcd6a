"""
Default bootstrap stages, in execution order.

Each stage is an independently idempotent step: its precondition lets a
repeated run skip work that is already done, and its action is written
so that running it again converges on the same host state.
"""

from __future__ import annotations

import logging

from yukoloader.core.engine.runtime import StageRuntime
from yukoloader.core.errors import MissingRequiredCapability, OptionalStageUnavailable, SyncConflict
from yukoloader.core.models.stage import Stage, StageOutcome
from yukoloader.core.services import (
    config_file,
    ephemeral,
    nix,
    repo_sync,
    session,
    ssh_agent,
    switch,
    user_env,
)
from yukoloader.core.services.probe import command_probe
from yukoloader.core.services.remediation import package_manager_candidates, remediate

logger = logging.getLogger(__name__)


# ── Actions ─────────────────────────────────────────────────────


def install_curl(runtime: StageRuntime) -> StageOutcome:
    logger.warning("curl is not installed.")
    used = remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")
    return StageOutcome(message=f"installed with {used}", details={"installer": used})


def activate_nix_profile(runtime: StageRuntime) -> StageOutcome:
    ctx = nix.activate_profile(runtime.ctx)
    if ctx is None:
        return StageOutcome(message="nothing to activate", status="skipped")
    return StageOutcome(message=f"added {nix.profile_bin(runtime.ctx)} to PATH", context=ctx)


def install_nix(runtime: StageRuntime) -> StageOutcome:
    logger.info("Nix not detected; installing single-user Nix.")
    return StageOutcome(message="installed single-user Nix", context=nix.install_nix(runtime))


def configure_nix(runtime: StageRuntime) -> StageOutcome:
    path = nix.nix_conf_path(runtime.ctx)
    done = config_file.ensure_line(path, runtime.settings.nix_conf_line)
    logger.info("Wrote Nix configuration to %s", path)
    return StageOutcome(message=f"{path}: {done}", details={"path": str(path), "line": done})


def supply_git(runtime: StageRuntime) -> StageOutcome:
    logger.info("git is not installed.")
    supplied = ephemeral.supply(runtime, "nixpkgs#git", "git")
    if not supplied.ok:
        raise MissingRequiredCapability(
            f"git is not installed and failed to launch in nix shell: {supplied.error}"
        )
    return StageOutcome(
        message=f"ephemeral git at {supplied.path}",
        context=supplied.context,
        details={"path": supplied.path},
    )


def load_credentials(runtime: StageRuntime) -> StageOutcome:
    report = ssh_agent.prepare_agent(runtime, runtime.settings.ssh_keys)
    message = f"agent {report.agent}; loaded {len(report.loaded)}/{len(report.attempted)} keys"
    return StageOutcome(message=message, context=report.context, details=report.to_dict())


def sync_repository(runtime: StageRuntime) -> StageOutcome:
    settings = runtime.settings
    handle = repo_sync.RepoHandle(
        path=runtime.clone_dir,
        preferred=settings.repo_ssh,
        fallback=settings.repo_https,
    )
    try:
        result = repo_sync.sync_repository(runtime, handle)
    except SyncConflict:
        runtime.facts["checkout_stale"] = True
        raise
    runtime.facts["checkout_stale"] = False
    return StageOutcome(
        message=f"{result.action}" + (f" via {result.transport} transport" if result.transport else ""),
        details={"action": result.action, "transport": result.transport},
    )


def write_user_env(runtime: StageRuntime) -> StageOutcome:
    # The record lives inside the checkout; writing it into a bare
    # directory would block the clone on the next run.
    if not (runtime.clone_dir / ".git").is_dir():
        logger.warning("No checkout at %s; not writing the user record.", runtime.clone_dir)
        return StageOutcome(message=f"no checkout at {runtime.clone_dir}", status="skipped")
    logger.info("=== Yuko Environment User Setup ===")
    params = user_env.capture_params(runtime.prompter, runtime.ctx)
    path = user_env.write_env_record(runtime.clone_dir / runtime.settings.env_file_name, params)
    return StageOutcome(message=f"wrote {path}", details={"path": str(path)})


def apply_home_manager(runtime: StageRuntime) -> StageOutcome:
    clone_dir = runtime.clone_dir
    if not clone_dir.is_dir():
        raise OptionalStageUnavailable(
            f"Clone directory {clone_dir} not found; skipping home-manager step."
        )
    if runtime.facts.get("checkout_stale"):
        if not runtime.settings.apply_stale_checkout:
            raise OptionalStageUnavailable(
                "Checkout could not be updated; not applying a stale configuration."
            )
        logger.warning("Applying the existing checkout; it could not be updated this run.")

    flake_ref = runtime.settings.flake_ref
    logger.info("Running home-manager switch with flake %s in %s.", flake_ref, clone_dir)
    strategy = switch.apply_switch(runtime, flake_ref, clone_dir)
    return StageOutcome(message=f"switched via {strategy}", details={"strategy": strategy})


def start_session(runtime: StageRuntime) -> StageOutcome:
    argv = session.launch_session(runtime, runtime.settings.tmux_session)
    if argv is None:
        return StageOutcome(message="declined", status="skipped")
    return StageOutcome(message=f"attaching to {runtime.settings.tmux_session}", handoff=argv)


# ── Stage list ──────────────────────────────────────────────────


def default_stages(with_session: bool = True) -> list[Stage]:
    """The bootstrap pipeline, leaves first."""
    stages = [
        Stage(
            name="curl",
            description="Install curl with the system package manager",
            precondition=command_probe("curl"),
            action=install_curl,
            postcondition=command_probe("curl"),
        ),
        Stage(
            name="nix-profile",
            description="Put the per-user Nix profile on PATH",
            action=activate_nix_profile,
            optional=True,
        ),
        Stage(
            name="nix",
            description="Install single-user Nix",
            precondition=command_probe("nix"),
            action=install_nix,
            postcondition=command_probe("nix"),
        ),
        Stage(
            name="nix-config",
            description="Enable nix-command and flakes in nix.conf",
            action=configure_nix,
        ),
        Stage(
            name="git",
            description="Provide git, from nix shell when not installed",
            precondition=command_probe("git"),
            action=supply_git,
            postcondition=command_probe("git"),
        ),
        Stage(
            name="ssh-agent",
            description="Start or reuse ssh-agent and load default keys",
            action=load_credentials,
            optional=True,
        ),
        Stage(
            name="repository",
            description="Clone or update the environment repository",
            action=sync_repository,
        ),
        Stage(
            name="user-env",
            description="Record user name and home directory for the flake",
            action=write_user_env,
        ),
        Stage(
            name="home-manager",
            description="Apply the environment flake with home-manager",
            action=apply_home_manager,
            optional=True,
        ),
    ]
    if with_session:
        stages.append(
            Stage(
                name="session",
                description="Start or attach to the tmux session",
                action=start_session,
                optional=True,
            )
        )
    return stages
