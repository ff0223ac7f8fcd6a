"""
Host context — the process environment every stage reads from.

Stages never touch ``os.environ`` directly.  The pipeline builds one
``HostContext`` at startup and threads it through every stage; a stage
that needs to change the environment (a new search-path entry, an
ssh-agent socket) returns an updated copy instead of mutating ambient
state.

    ctx = HostContext.from_environ()
    ctx = ctx.with_path_prefix("/nix/store/...-git/bin")
    ctx = ctx.with_env(SSH_AUTH_SOCK="/tmp/ssh-XXXX/agent.123")
"""

from __future__ import annotations

import getpass
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class HostContext(BaseModel):
    """Immutable snapshot of the environment a run operates in."""

    model_config = ConfigDict(frozen=True)

    env: dict[str, str] = Field(default_factory=dict)
    home: Path
    user: str
    uid: int = -1

    @classmethod
    def from_environ(cls) -> HostContext:
        """Capture the current process environment."""
        env = dict(os.environ)
        home = Path(env.get("HOME") or Path.home())
        user = env.get("USER") or getpass.getuser()
        return cls(env=env, home=home, user=user, uid=os.geteuid())

    # ── Derived views ───────────────────────────────────────────

    @property
    def path(self) -> str:
        """Executable search path."""
        return self.env.get("PATH", "")

    @property
    def is_root(self) -> bool:
        return self.uid == 0

    @property
    def is_ci(self) -> bool:
        return self.env.get("CI", "").lower() == "true"

    @property
    def config_root(self) -> Path:
        """``$XDG_CONFIG_HOME`` or ``~/.config``."""
        override = self.env.get("XDG_CONFIG_HOME")
        return Path(override) if override else self.home / ".config"

    @property
    def state_root(self) -> Path:
        """``$XDG_STATE_HOME`` or ``~/.local/state``."""
        override = self.env.get("XDG_STATE_HOME")
        return Path(override) if override else self.home / ".local" / "state"

    @property
    def agent_socket(self) -> str | None:
        return self.env.get("SSH_AUTH_SOCK") or None

    # ── Functional updates ──────────────────────────────────────

    def with_env(self, **values: str) -> HostContext:
        """Return a copy with the given variables set."""
        return self.model_copy(update={"env": {**self.env, **values}})

    def with_path_prefix(self, directory: str | Path) -> HostContext:
        """Return a copy with *directory* at the front of PATH.

        A directory already on PATH is moved to the front, not duplicated.
        """
        directory = str(directory)
        parts = [p for p in self.path.split(os.pathsep) if p and p != directory]
        return self.with_env(PATH=os.pathsep.join([directory, *parts]))
