"""
Bootstrap use case — provision this host end to end.

This is the top-level orchestrator: it resolves the host context and
settings, builds the stage list, runs the pipeline, and records the run
in the audit ledger.  The session handoff, if any, is returned to the
caller, which performs it once everything else is done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from yukoloader.adapters.registry import AdapterRegistry
from yukoloader.core.config.loader import ConfigError, load_settings
from yukoloader.core.context import HostContext
from yukoloader.core.engine.pipeline import generate_run_id, run_pipeline, write_audit_entry
from yukoloader.core.engine.runtime import StageRuntime
from yukoloader.core.engine.stages import default_stages
from yukoloader.core.models.settings import BootstrapSettings
from yukoloader.core.models.stage import PipelineReport, Stage
from yukoloader.core.persistence.audit import AuditWriter, default_audit_path
from yukoloader.core.services.prompts import Prompter, select_prompter

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """Result of a bootstrap run."""

    report: PipelineReport | None = None
    settings: BootstrapSettings | None = None
    context: HostContext | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return 1
        return self.report.exit_code

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {}
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_bootstrap(
    config_path: Path | None = None,
    ctx: HostContext | None = None,
    settings: BootstrapSettings | None = None,
    registry: AdapterRegistry | None = None,
    prompter: Prompter | None = None,
    stages: list[Stage] | None = None,
    skip: list[str] | None = None,
    with_session: bool = True,
    assume_yes: bool = False,
    audit_path: Path | None = None,
) -> BootstrapResult:
    """Bring the host to its target state.

    Args:
        config_path: Optional explicit settings file.
        ctx: Host context (default: captured from the process).
        settings: Pre-resolved settings; skips loading *config_path*.
        registry: Adapter registry (default: real command + git adapters).
        prompter: Prompt source (default: chosen from the context).
        stages: Stage list (default: ``default_stages``).
        skip: Stage names to leave out.
        with_session: Include the tmux session stage.
        assume_yes: Auto-accept every confirmation.
        audit_path: Ledger override (default: under the state root).

    Returns:
        BootstrapResult with the pipeline report.
    """
    result = BootstrapResult()

    ctx = ctx or HostContext.from_environ()
    result.context = ctx

    # ── Settings ─────────────────────────────────────────────────
    if settings is None:
        try:
            settings = load_settings(config_path, ctx)
        except ConfigError as e:
            result.error = str(e)
            return result
    result.settings = settings

    # ── Runtime ──────────────────────────────────────────────────
    runtime = StageRuntime(
        ctx=ctx,
        settings=settings,
        registry=registry or AdapterRegistry.default(),
        prompter=prompter or select_prompter(ctx, assume_yes=assume_yes),
    )

    # ── Run ──────────────────────────────────────────────────────
    report = run_pipeline(
        stages if stages is not None else default_stages(with_session=with_session),
        runtime,
        skip=skip or (),
        run_id=generate_run_id(),
    )
    result.report = report
    result.context = runtime.ctx

    # ── Write audit log ──────────────────────────────────────────
    write_audit_entry(report, AuditWriter(audit_path or default_audit_path(ctx)))

    if report.status == "failed":
        logger.error("Bootstrap failed at stage '%s'.", report.failed_stage.name)
    elif report.handoff is None:
        logger.info("YukoLoader finished successfully.")

    return result
