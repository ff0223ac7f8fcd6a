"""
Pipeline driver — the central orchestration loop.

Takes an ordered list of Stage descriptors and runs them one by one
against a StageRuntime, classifying every failure and collecting one
StageResult per stage.

Flow per stage:
    precondition satisfied? → skip
    action → (error? classify) → postcondition re-probe → record

A fatal error on a required stage stops the run.  Everything else is
recorded and the pipeline moves on.  A stage that produces a handoff
ends the run: nothing after it executes.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import UTC, datetime
from typing import Iterable

from yukoloader.core.engine.runtime import StageRuntime
from yukoloader.core.errors import BootstrapError, RemediationIneffective
from yukoloader.core.models.stage import PipelineReport, Stage, StageOutcome, StageResult
from yukoloader.core.persistence.audit import AuditEntry, AuditWriter
from yukoloader.core.services.probe import describe

logger = logging.getLogger(__name__)


def _run_stage(stage: Stage, runtime: StageRuntime) -> StageResult:
    """Run one stage and classify its outcome.  Never raises BootstrapError."""
    start = time.monotonic()

    def result(status: str, message: str = "", error_kind: str | None = None, **details) -> StageResult:
        return StageResult(
            name=stage.name,
            status=status,
            message=message,
            error_kind=error_kind,
            duration_ms=int((time.monotonic() - start) * 1000),
            details=details,
        )

    if stage.precondition is not None and stage.precondition(runtime.ctx):
        logger.info("%s detected; skipping %s.", describe(stage.precondition), stage.name)
        return result("skipped", "already satisfied")

    runtime.stage = stage.name
    try:
        outcome: StageOutcome = stage.action(runtime)
    except BootstrapError as e:
        kind = type(e).__name__
        if stage.optional or not e.fatal:
            logger.warning("%s", e)
            return result("warned", str(e), kind)
        logger.error("%s", e)
        return result("failed", str(e), kind)
    except Exception as e:
        if stage.optional:
            logger.warning("%s failed unexpectedly: %s", stage.name, e)
            return result("warned", str(e), type(e).__name__)
        logger.debug("Unexpected error in %s", stage.name, exc_info=True)
        logger.error("%s failed: %s", stage.name, e)
        return result("failed", str(e), type(e).__name__)
    finally:
        runtime.stage = ""

    if outcome.context is not None:
        runtime.ctx = outcome.context

    if stage.postcondition is not None and not stage.postcondition(runtime.ctx):
        message = f"{stage.name} ran but {describe(stage.postcondition)} is still not satisfied"
        kind = RemediationIneffective.__name__
        if stage.optional:
            logger.warning("%s", message)
            return result("warned", message, kind)
        logger.error("%s", message)
        return result("failed", message, kind)

    stage_result = result(outcome.status, outcome.message, **outcome.details)
    if outcome.handoff:
        stage_result.details["handoff"] = list(outcome.handoff)
    return stage_result


def run_pipeline(
    stages: Iterable[Stage],
    runtime: StageRuntime,
    skip: Iterable[str] = (),
    run_id: str | None = None,
) -> PipelineReport:
    """Run *stages* in order.

    Args:
        stages: Ordered stage descriptors.
        runtime: Shared per-run state; ``runtime.ctx`` is replaced as
            stages update the environment.
        skip: Stage names to leave out.
        run_id: Identifier for the report (generated when omitted).

    Returns:
        PipelineReport with one result per evaluated stage.
    """
    skipped = set(skip)
    report = PipelineReport(run_id=run_id or generate_run_id())
    start = time.monotonic()

    for stage in stages:
        if stage.name in skipped:
            logger.info("Skipping %s as requested.", stage.name)
            report.results.append(
                StageResult(name=stage.name, status="skipped", message="skipped by request")
            )
            continue

        stage_result = _run_stage(stage, runtime)
        report.results.append(stage_result)

        status_marker = {"ok": "✓", "skipped": "⊘", "warned": "!", "failed": "✗"}[stage_result.status]
        logger.debug("%s %s → %s", status_marker, stage.name, stage_result.status)

        if stage_result.status == "failed":
            break
        handoff = stage_result.details.get("handoff")
        if handoff:
            report.handoff = handoff
            break

    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report


def write_audit_entry(report: PipelineReport, audit_writer: AuditWriter) -> None:
    """Append the run to the audit ledger."""
    entry = AuditEntry(
        run_id=report.run_id,
        status=report.status,
        stages_total=report.total,
        stages_succeeded=report.count("ok"),
        stages_skipped=report.count("skipped"),
        stages_warned=report.count("warned"),
        stages_failed=report.count("failed"),
        duration_ms=report.duration_ms,
        stages={r.name: r.status for r in report.results},
        errors=[
            f"{r.name}: {r.message}" for r in report.results if r.status in ("warned", "failed")
        ],
        context={"handoff": bool(report.handoff)},
    )
    audit_writer.write(entry)


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"
