"""
Action and Receipt models — the command execution contract.

Actions represent requested external commands. Receipts represent
results. Stages send Actions through the adapter registry and get
Receipts back, never exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested external command.

    ``params["argv"]`` is always an argument vector; commands are never
    assembled as shell strings.
    """

    id: str                         # unique action identifier
    name: str = ""                  # human-readable name
    adapter: str = "shell"          # which adapter handles this
    stage: str = ""                 # stage that issued the command
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        return list(self.params.get("argv", []))


class Receipt(BaseModel):
    """Result of an adapter execution.

    Receipts capture the full outcome of a command: exit code in
    ``metadata["return_code"]``, captured stdout in ``output`` and
    stderr (or a synthesized message) in ``error``.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        return self.metadata.get("return_code")

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )
