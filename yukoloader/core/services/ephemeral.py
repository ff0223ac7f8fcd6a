"""
Ephemeral tool supply.

When a required tool is missing and not installed permanently, start it
from a throwaway ``nix shell`` environment, resolve the binary inside
it, and put its directory at the front of the run's search path.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from yukoloader.core.context import HostContext
from yukoloader.core.services.probe import has_command

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuppliedTool:
    """Outcome of an ephemeral supply attempt."""

    ok: bool
    path: str | None = None
    context: HostContext | None = None
    error: str = ""


def supply(runtime: StageRuntime, tool_spec: str, binary: str) -> SuppliedTool:
    """Provide *binary* from the Nix installable *tool_spec*.

    Args:
        tool_spec: Installable, e.g. ``nixpkgs#git``.
        binary: Executable name to resolve inside the environment.

    Returns:
        SuppliedTool; on success ``context`` has the binary's
        directory prepended to PATH.
    """
    if not has_command(runtime.ctx, "nix"):
        return SuppliedTool(ok=False, error="nix is not available to build an ephemeral environment")

    logger.info("Falling back to ephemeral %s via nix shell...", binary)
    receipt = runtime.run(["nix", "shell", tool_spec, "-c", "which", binary])
    if not receipt.ok:
        return SuppliedTool(ok=False, error=receipt.error or "nix shell failed")

    lines = [line.strip() for line in receipt.output.splitlines() if line.strip()]
    path = lines[-1] if lines else ""
    if not os.path.isabs(path):
        return SuppliedTool(ok=False, error=f"{binary} not found inside nix shell {tool_spec}")

    context = runtime.ctx.with_path_prefix(os.path.dirname(path))
    logger.info("Ephemeral %s activated at: %s", binary, path)
    return SuppliedTool(ok=True, path=path, context=context)
