"""
Repository sync — clone on first run, fast-forward afterwards.

    Absent  ──clone──▶ Present
    Present ──pull --rebase──▶ Present   (failure: warning, checkout kept)

Cloning prefers the authenticated (SSH) transport.  A cheap
``git ls-remote`` decides whether it is reachable; when it is not, only
the fallback (HTTPS) transport is used.  Local work is never discarded:
a sync that cannot be applied cleanly is backed out and reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from yukoloader.core.errors import CloneFailed, SyncConflict, TransportUnreachable

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)

RepoState = Literal["absent", "present", "blocked"]


@dataclass(frozen=True)
class RepoHandle:
    """Local checkout plus its two remote transports."""

    path: Path
    preferred: str
    fallback: str


@dataclass(frozen=True)
class RepoSyncResult:
    action: Literal["cloned", "synced"]
    transport: Literal["preferred", "fallback"] | None = None


def repo_state(handle: RepoHandle) -> RepoState:
    """Where the local checkout stands.

    ``blocked`` means something other than a checkout occupies the path.
    """
    if (handle.path / ".git").is_dir():
        return "present"
    if handle.path.exists() and (not handle.path.is_dir() or any(handle.path.iterdir())):
        return "blocked"
    return "absent"


def check_transport(runtime: StageRuntime, url: str) -> None:
    """Confirm *url* answers a remote listing (no clone).

    Raises:
        TransportUnreachable: The listing failed.
    """
    receipt = runtime.run(
        ["git", "ls-remote", url],
        adapter="git",
        timeout=runtime.settings.probe_timeout,
    )
    if not receipt.ok:
        reason = receipt.metadata.get("reason", "other")
        raise TransportUnreachable(f"{url} is not reachable ({reason})")


def _clone(runtime: StageRuntime, url: str, dest: Path) -> bool:
    receipt = runtime.run(
        ["git", "clone", url, str(dest)],
        adapter="git",
        interactive=True,
        timeout=runtime.settings.network_timeout,
    )
    return receipt.ok


def clone(runtime: StageRuntime, handle: RepoHandle) -> RepoSyncResult:
    """Clone *handle*, preferring its authenticated transport.

    The reachability check alone picks the transport; exactly one clone
    is attempted.

    Raises:
        CloneFailed: The clone over the chosen transport failed.
    """
    handle.path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Attempting to clone %s into %s (SSH preferred).", handle.preferred, handle.path)

    url, transport = handle.preferred, "preferred"
    try:
        check_transport(runtime, handle.preferred)
    except TransportUnreachable as e:
        logger.warning("%s. Falling back to HTTPS clone.", e)
        url, transport = handle.fallback, "fallback"

    if _clone(runtime, url, handle.path):
        return RepoSyncResult(action="cloned", transport=transport)

    raise CloneFailed(f"Could not clone {url} into {handle.path}")


def _rebase_in_progress(path: Path) -> bool:
    git_dir = path / ".git"
    return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()


def sync(runtime: StageRuntime, handle: RepoHandle) -> RepoSyncResult:
    """Rebase the existing checkout onto its upstream.

    Raises:
        SyncConflict: The update could not be applied; the checkout is
            left as it was.
    """
    logger.info("Repository already cloned at %s. Pulling latest changes...", handle.path)
    receipt = runtime.run(
        ["git", "-C", str(handle.path), "pull", "--rebase"],
        adapter="git",
        interactive=False,
        timeout=runtime.settings.network_timeout,
    )
    if receipt.ok:
        return RepoSyncResult(action="synced")

    if _rebase_in_progress(handle.path):
        logger.info("Aborting the interrupted rebase to keep local commits intact.")
        runtime.run(["git", "-C", str(handle.path), "rebase", "--abort"], adapter="git")

    reason = receipt.metadata.get("reason", "other")
    raise SyncConflict(
        f"git pull failed ({reason}); you may need to resolve conflicts manually."
    )


def sync_repository(runtime: StageRuntime, handle: RepoHandle) -> RepoSyncResult:
    """Bring *handle* to the Present state.

    Raises:
        CloneFailed: Absent and the clone failed, or the path is
            occupied by something that is not a checkout.
        SyncConflict: Present but could not be updated (non-fatal).
    """
    state = repo_state(handle)
    if state == "present":
        return sync(runtime, handle)
    if state == "blocked":
        raise CloneFailed(
            f"{handle.path} exists and is not a git checkout; refusing to clone over it."
        )
    return clone(runtime, handle)
