"""
Stage models — descriptors, outcomes, and the run report.

A ``Stage`` is a named, independently idempotent unit of the bootstrap
pipeline.  The driver evaluates its precondition, runs its action,
re-checks its postcondition and records a ``StageResult``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal

from pydantic import BaseModel, Field

from yukoloader.core.context import HostContext

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime


Probe = Callable[[HostContext], bool]

StageStatus = Literal["ok", "skipped", "warned", "failed"]


@dataclass
class StageOutcome:
    """What a stage action hands back to the driver.

    ``context`` replaces the run's HostContext when set.  ``handoff`` is
    the argv the process should be replaced with once the run is
    recorded; only the final stage produces one.
    """

    message: str = ""
    status: StageStatus = "ok"
    context: HostContext | None = None
    handoff: list[str] | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class Stage:
    """A pipeline stage descriptor."""

    name: str
    action: Callable[[StageRuntime], StageOutcome]
    description: str = ""
    precondition: Probe | None = None    # satisfied → stage skipped
    postcondition: Probe | None = None   # re-probed after the action
    optional: bool = False               # failures become warnings


class StageResult(BaseModel):
    """Recorded result of one stage."""

    name: str
    status: StageStatus
    message: str = ""
    error_kind: str | None = None
    duration_ms: int = 0
    details: dict[str, Any] = Field(default_factory=dict)


class PipelineReport(BaseModel):
    """Result of running the whole pipeline."""

    run_id: str = ""
    results: list[StageResult] = Field(default_factory=list)
    handoff: list[str] | None = None
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    def count(self, status: StageStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def failed_stage(self) -> StageResult | None:
        for r in self.results:
            if r.status == "failed":
                return r
        return None

    @property
    def status(self) -> str:
        if self.failed_stage is not None:
            return "failed"
        if self.count("warned"):
            return "partial"
        return "ok"

    @property
    def exit_code(self) -> int:
        return 1 if self.status == "failed" else 0

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.count("ok"),
            "skipped": self.count("skipped"),
            "warned": self.count("warned"),
            "failed": self.count("failed"),
            "handoff": self.handoff,
            "duration_ms": self.duration_ms,
            "stages": [r.model_dump(mode="json") for r in self.results],
        }
