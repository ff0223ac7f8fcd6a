"""
Capability probes.

Cheap, side-effect-free checks run before every remediation decision:
a search-path lookup, a file stat, or an environment read.  Probes never
spawn processes and never touch the network.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable

from yukoloader.core.context import HostContext
from yukoloader.core.models.stage import Probe


def command_path(ctx: HostContext, name: str) -> str | None:
    """Absolute path of *name* on the context's search path, or None."""
    return shutil.which(name, path=ctx.path)


def has_command(ctx: HostContext, name: str) -> bool:
    return command_path(ctx, name) is not None


def has_file(path: Path) -> bool:
    return path.is_file()


def has_env(ctx: HostContext, key: str) -> bool:
    return bool(ctx.env.get(key))


def command_probe(name: str) -> Probe:
    """Probe that succeeds when *name* is on the search path."""

    def probe(ctx: HostContext) -> bool:
        return has_command(ctx, name)

    probe.__name__ = f"command:{name}"
    return probe


def file_probe(locate: Callable[[HostContext], Path]) -> Probe:
    """Probe that succeeds when the file *locate(ctx)* exists."""

    def probe(ctx: HostContext) -> bool:
        return has_file(locate(ctx))

    probe.__name__ = "file"
    return probe


def env_probe(key: str) -> Probe:
    """Probe that succeeds when *key* is set and non-empty."""

    def probe(ctx: HostContext) -> bool:
        return has_env(ctx, key)

    probe.__name__ = f"env:{key}"
    return probe


def describe(probe: Probe | None) -> str:
    return getattr(probe, "__name__", "probe") if probe is not None else "-"
