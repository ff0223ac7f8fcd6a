"""
Git adapter — repository transport and sync operations.

Runs ``git`` argument vectors through the command runner, keeps
reachability probes from blocking on credential prompts, and tags every
failure with a coarse reason the repository stage can act on.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from yukoloader.adapters.base import Adapter, ExecutionContext
from yukoloader.adapters.shell.command import run_argv
from yukoloader.core.models.action import Receipt

logger = logging.getLogger(__name__)

OPERATIONS = {"ls-remote", "clone", "pull", "fetch", "rebase", "rev-parse", "status"}

# Operations that must fail fast instead of asking for credentials
_NON_INTERACTIVE = {"ls-remote"}

_AUTH_MARKERS = (
    "permission denied", "publickey", "authentication", "could not read username",
    "403", "401", "host key verification failed",
)
_NETWORK_MARKERS = (
    "could not resolve host", "connection timed out", "connection refused",
    "network is unreachable", "could not read from remote repository",
    "unable to access", "timed out",
)
_CONFLICT_MARKERS = (
    "conflict", "diverg", "cannot rebase", "cannot pull with rebase",
    "unstaged changes", "uncommitted changes", "would be overwritten",
)


def git_operation(argv: list[str]) -> str:
    """Return the git subcommand of *argv*, skipping ``-C <dir>``-style options."""
    args = argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("-C", "-c"):
            i += 2
            continue
        if arg.startswith("-"):
            i += 1
            continue
        return arg
    return ""


def classify_failure(stderr: str) -> str:
    """Classify a git error message: 'auth', 'network', 'conflict', or 'other'."""
    lower = stderr.lower()
    if any(s in lower for s in _CONFLICT_MARKERS):
        return "conflict"
    if any(s in lower for s in _AUTH_MARKERS):
        return "auth"
    if any(s in lower for s in _NETWORK_MARKERS):
        return "network"
    return "other"


class GitAdapter(Adapter):
    """Git operations for cloning and syncing the environment repository.

    Action params:
        argv (list[str]): Full git command, ``argv[0]`` being git.
        timeout (int | None): Timeout in seconds.
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv")
        if not argv or not isinstance(argv, list):
            return False, "Missing required param: 'argv'"

        if Path(argv[0]).name != "git":
            return False, f"Not a git command: {argv[0]}"

        operation = git_operation(argv)
        if operation not in OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(OPERATIONS))}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = git_operation(context.argv)

        env = dict(context.env)
        if operation in _NON_INTERACTIVE:
            env["GIT_TERMINAL_PROMPT"] = "0"
            env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")

        receipt = run_argv(self.name, context, env=env)
        receipt.metadata["operation"] = operation
        if receipt.failed:
            reason = classify_failure(receipt.error or "")
            receipt.metadata["reason"] = reason
            logger.debug("git %s failed (%s): %s", operation, reason, receipt.error)
        return receipt
