"""
YukoLoader — CLI entrypoint.

Usage:
    yukoloader --help
    yukoloader bootstrap
    yukoloader stages
    yukoloader config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from yukoloader.core.observability.logging_config import setup_logging

from yukoloader import __version__

_STATUS_COLORS = {"ok": "green", "partial": "yellow", "failed": "red"}
_STAGE_MARKERS = {
    "ok": ("✓", "green"),
    "skipped": ("⊘", "cyan"),
    "warned": ("!", "yellow"),
    "failed": ("✗", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="yukoloader")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: <config-root>/yukoloader/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """YukoLoader — bootstrap this host into the Yuko environment."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    elif verbose:
        level = "INFO"
    else:
        level = os.environ.get("YUKO_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("YUKO_LOG_FILE"),
        log_file_level=os.environ.get("YUKO_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Accept every confirmation.")
@click.option("--skip", "skip", multiple=True, metavar="STAGE", help="Leave out a stage by name.")
@click.option("--no-session", is_flag=True, help="Don't start the tmux session at the end.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def bootstrap(
    ctx: click.Context,
    assume_yes: bool,
    skip: tuple[str, ...],
    no_session: bool,
    as_json: bool,
) -> None:
    """Provision this host: Nix, git, credentials, the environment repo.

    Examples:

        yukoloader bootstrap

        yukoloader bootstrap --yes --no-session

        yukoloader bootstrap --skip ssh-agent --skip home-manager
    """
    from yukoloader.adapters.shell.command import exec_replace
    from yukoloader.core.engine.stages import default_stages
    from yukoloader.core.use_cases.bootstrap import run_bootstrap

    known = {stage.name for stage in default_stages()}
    unknown = [name for name in skip if name not in known]
    if unknown:
        raise click.BadParameter(
            f"unknown stage(s): {', '.join(unknown)}", param_hint="--skip",
        )

    result = run_bootstrap(
        config_path=ctx.obj.get("config_path"),
        skip=list(skip),
        with_session=not no_session,
        assume_yes=assume_yes,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif result.error:
        click.secho(f"❌ {result.error}", fg="red")
    else:
        _print_report(result.report, quiet=ctx.obj.get("quiet", False))

    report = result.report
    if report is not None and report.handoff and report.exit_code == 0 and result.context is not None:
        exec_replace(report.handoff, result.context.env)

    sys.exit(result.exit_code)


def _print_report(report, quiet: bool = False) -> None:
    if not quiet:
        click.echo()
        for stage_result in report.results:
            marker, color = _STAGE_MARKERS[stage_result.status]
            click.secho(f"   {marker} {stage_result.name:<13}", fg=color, nl=False)
            click.echo(f" {stage_result.message}")
        click.echo()

    color = _STATUS_COLORS.get(report.status, "white")
    click.secho(
        f"   Result: {report.status} — {report.count('ok')} done, "
        f"{report.count('skipped')} skipped, {report.count('warned')} warned, "
        f"{report.count('failed')} failed ({report.duration_ms}ms)",
        fg=color,
        bold=True,
    )
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def stages(as_json: bool) -> None:
    """List the bootstrap stages and what this host already has."""
    from yukoloader.core.context import HostContext
    from yukoloader.core.engine.stages import default_stages
    from yukoloader.core.services.probe import describe

    host = HostContext.from_environ()
    rows = []
    for stage in default_stages():
        satisfied = stage.precondition(host) if stage.precondition else None
        rows.append({
            "name": stage.name,
            "description": stage.description,
            "optional": stage.optional,
            "probe": describe(stage.precondition) if stage.precondition else None,
            "satisfied": satisfied,
        })

    if as_json:
        click.echo(json.dumps({"stages": rows}, indent=2))
        return

    click.secho("\n🧭 Bootstrap stages", fg="cyan", bold=True)
    for i, row in enumerate(rows, start=1):
        if row["satisfied"] is True:
            state = click.style("present", fg="green")
        elif row["satisfied"] is False:
            state = click.style("missing", fg="yellow")
        else:
            state = click.style("always runs", fg="white")
        optional = " (optional)" if row["optional"] else ""
        click.echo(f"   {i:>2}. {row['name']:<13} {state}{optional}")
        click.echo(f"       {row['description']}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("-n", "count", default=10, type=click.IntRange(min=1), help="Number of runs to show.")
def status(as_json: bool, count: int) -> None:
    """Show recent bootstrap runs from the audit ledger."""
    from yukoloader.core.context import HostContext
    from yukoloader.core.persistence.audit import AuditWriter, default_audit_path

    ledger = AuditWriter(default_audit_path(HostContext.from_environ()))
    entries = ledger.read_recent(count)

    if as_json:
        click.echo(json.dumps({
            "ledger": str(ledger.path),
            "total": ledger.entry_count(),
            "runs": [e.model_dump(mode="json") for e in entries],
        }, indent=2))
        return

    if not entries:
        click.secho("No bootstrap runs recorded yet.", fg="yellow")
        click.echo(f"   Ledger: {ledger.path}")
        return

    click.secho(f"\n📜 Recent runs ({len(entries)} of {ledger.entry_count()})", fg="cyan", bold=True)
    for entry in reversed(entries):
        color = _STATUS_COLORS.get(entry.status, "white")
        click.echo(f"   {entry.timestamp}  {entry.run_id}  ", nl=False)
        click.secho(f"{entry.status:<8}", fg=color, nl=False)
        click.echo(
            f" {entry.stages_succeeded} done, {entry.stages_skipped} skipped, "
            f"{entry.stages_warned} warned, {entry.stages_failed} failed"
        )
        for err in entry.errors:
            click.echo(f"       • {err}")
    click.echo()


@cli.group()
def config() -> None:
    """Bootstrap configuration commands."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Print the resolved settings."""
    from yukoloader.core.config.loader import ConfigError, load_settings

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = settings.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    width = max(len(key) for key in data)
    for key, value in data.items():
        if isinstance(value, list):
            value = ", ".join(value)
        click.echo(f"{key:<{width}}  {value}")


@config.command("check")
@click.pass_context
def config_check(ctx: click.Context) -> None:
    """Validate the configuration file."""
    from yukoloader.core.config.loader import ConfigError, default_config_path, load_settings
    from yukoloader.core.context import HostContext

    config_path: Path | None = ctx.obj.get("config_path")
    shown = config_path or default_config_path(HostContext.from_environ())

    try:
        load_settings(config_path)
    except ConfigError as e:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        click.echo(f"   {e}")
        sys.exit(1)

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    if shown.is_file():
        click.echo(f"   File: {shown}")
    else:
        click.echo(f"   No file at {shown}; using defaults")


if __name__ == "__main__":
    cli()
