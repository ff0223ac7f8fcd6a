"""
SSH credential loading.

Reuses a live ssh-agent when ``SSH_AUTH_SOCK`` points at a reachable
socket, starts a new one otherwise, and offers each default key to it.
Loading is partial-success tolerant: a key that needs a passphrase the
operator does not supply, or a malformed key, is counted and reported,
never fatal.

Design:
  - Liveness = socket file exists and accepts a connection
  - New agent exports are parsed from ``ssh-agent -s`` and folded into
    the run's HostContext, never into ``os.environ``
  - ``ssh-add`` runs attached to the terminal so passphrase prompts work
"""

from __future__ import annotations

import logging
import socket
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from yukoloader.core.context import HostContext
from yukoloader.core.services.probe import has_command

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)

AgentSource = Literal["reused", "started", "unavailable"]


@dataclass
class CredentialLoadReport:
    """What happened while preparing the agent."""

    agent: AgentSource
    context: HostContext
    candidates: list[str] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return [k for k in self.attempted if k not in self.loaded]

    def to_dict(self) -> dict:
        return {
            "agent": self.agent,
            "attempted": len(self.attempted),
            "loaded": len(self.loaded),
            "failed": self.failed,
        }


# ═══════════════════════════════════════════════════════════════════
#  Agent detection
# ═══════════════════════════════════════════════════════════════════


def agent_is_live(sock: str | None) -> bool:
    """Whether *sock* is a unix socket that accepts connections."""
    if not sock:
        return False
    try:
        if not stat.S_ISSOCK(Path(sock).stat().st_mode):
            return False
    except OSError:
        return False

    client = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    client.settimeout(2)
    try:
        client.connect(sock)
        return True
    except OSError:
        return False
    finally:
        client.close()


def parse_agent_exports(output: str) -> dict[str, str]:
    """Parse ``ssh-agent -s`` output into environment variables.

    Lines look like ``SSH_AUTH_SOCK=/tmp/ssh-XXX/agent.1; export SSH_AUTH_SOCK;``.
    """
    env: dict[str, str] = {}
    for line in output.splitlines():
        if "=" in line and ";" in line:
            part = line.split(";")[0]
            key, val = part.split("=", 1)
            env[key.strip()] = val.strip()
    return env


def start_agent(runtime: StageRuntime) -> dict[str, str]:
    """Start a new ssh-agent and return its env vars ({} on failure)."""
    receipt = runtime.run(["ssh-agent", "-s"], timeout=10)
    if not receipt.ok:
        logger.warning("Failed to start ssh-agent: %s", receipt.error)
        return {}

    env = parse_agent_exports(receipt.output)
    if "SSH_AUTH_SOCK" not in env:
        logger.warning("ssh-agent did not report a socket")
        return {}

    logger.info("Started ssh-agent (PID: %s)", env.get("SSH_AGENT_PID", "?"))
    return env


# ═══════════════════════════════════════════════════════════════════
#  Key loading
# ═══════════════════════════════════════════════════════════════════


def prepare_agent(runtime: StageRuntime, key_names: list[str]) -> CredentialLoadReport:
    """Make an agent available and load the default keys into it."""
    ctx = runtime.ctx
    ssh_dir = ctx.home / ".ssh"
    candidates = [str(ssh_dir / name) for name in key_names]
    present = [key for key in candidates if Path(key).is_file()]
    if not present:
        logger.warning(
            "No default SSH keys found in %s. If the repository is private, "
            "ensure you have keys available or use HTTPS.",
            ssh_dir,
        )

    if agent_is_live(ctx.agent_socket):
        logger.info("SSH_AUTH_SOCK already set; public keys may already be loaded.")
        source: AgentSource = "reused"
    elif has_command(ctx, "ssh-agent"):
        logger.info("Starting ssh-agent...")
        exports = start_agent(runtime)
        if exports:
            ctx = ctx.with_env(**exports)
            source = "started"
        else:
            source = "unavailable"
    else:
        logger.warning("ssh-agent not found; skipping key loading.")
        source = "unavailable"

    report = CredentialLoadReport(agent=source, context=ctx, candidates=candidates)
    if source == "unavailable":
        return report

    for key in present:
        report.attempted.append(key)
        receipt = runtime.run(["ssh-add", key], interactive=True, ctx=ctx)
        if receipt.ok:
            report.loaded.append(key)
        else:
            logger.warning("ssh-add failed for %s (maybe passphrase required).", key)

    if report.attempted:
        logger.info(
            "Loaded %d of %d SSH keys into the agent.",
            len(report.loaded), len(report.attempted),
        )
    return report
