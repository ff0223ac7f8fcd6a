"""
Stage runtime — what a stage action gets to work with.

One runtime lives for the whole run.  It carries the current
HostContext, the settings, the adapter registry and the prompter, plus
a small ``facts`` dict stages use to hand data downstream (the clone
directory, whether the checkout is stale).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from yukoloader.adapters.registry import AdapterRegistry
from yukoloader.core.context import HostContext
from yukoloader.core.models.action import Action, Receipt
from yukoloader.core.models.settings import BootstrapSettings
from yukoloader.core.services.prompts import Prompter

logger = logging.getLogger(__name__)


@dataclass
class StageRuntime:
    """Mutable per-run state shared by the driver and stage actions."""

    ctx: HostContext
    settings: BootstrapSettings
    registry: AdapterRegistry
    prompter: Prompter
    stage: str = ""
    facts: dict[str, Any] = field(default_factory=dict)
    _seq: int = 0

    @property
    def clone_dir(self) -> Path:
        return self.ctx.home / self.settings.clone_dir_name

    def run(
        self,
        argv: list[str],
        *,
        adapter: str = "shell",
        interactive: bool = False,
        timeout: int | None = None,
        cwd: Path | str | None = None,
        ctx: HostContext | None = None,
    ) -> Receipt:
        """Execute *argv* through the registry with the current environment.

        Args:
            argv: Command and arguments.
            adapter: Adapter name ('shell' or 'git').
            interactive: Let the command use the terminal.
            timeout: Seconds before the command is killed.
            cwd: Working directory.
            ctx: Context to take the environment from (default: current).
        """
        self._seq += 1
        action = Action(
            id=f"{self.stage or 'run'}:{self._seq}",
            name=argv[0] if argv else "",
            adapter=adapter,
            stage=self.stage,
            params={"argv": list(argv), "interactive": interactive, "timeout": timeout},
        )
        env = (ctx or self.ctx).env
        receipt = self.registry.execute_action(
            action, env=env, cwd=str(cwd) if cwd is not None else None,
        )
        if receipt.failed:
            logger.debug("✗ %s: %s", action.id, receipt.error)
        return receipt
