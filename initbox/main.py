"""
initbox — CLI entrypoint.

Usage:
    initbox --help
    initbox install formula.yaml --dry-run
    initbox inspect https://example.com/formulas/web.yaml
    initbox tasks list
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from initbox import __version__
from initbox.core.errors import InitboxError
from initbox.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="initbox")
@click.option("--verbose", "-v", is_flag=True, help="Show progress and step output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--tasks-dir",
    "tasks_dirs",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    envvar="INITBOX_TASKS_DIR",
    help="Extra task catalog directory (repeatable; overrides bundled tasks).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    tasks_dirs: tuple[Path, ...],
) -> None:
    """initbox — install developer tools from YAML formulas."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["tasks_dirs"] = tasks_dirs

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


# ── Helpers ─────────────────────────────────────────────────────


def _catalog(ctx: click.Context):
    from initbox.core.config.catalog import default_catalog

    return default_catalog(ctx.obj.get("tasks_dirs", ()))


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _load_and_resolve(ctx: click.Context, source: str):
    """Load ``source`` and resolve its tasks; exits on any error."""
    from initbox.adapters.http.fetch import UrllibFetcher
    from initbox.core.config.loader import load_formula
    from initbox.core.engine.resolver import resolve_formula

    fetcher = UrllibFetcher()
    try:
        formula = load_formula(source, fetcher=fetcher)
        return resolve_formula(formula, _catalog(ctx), fetcher=fetcher)
    except InitboxError as e:
        _fail(str(e))


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("source")
@click.option("--task", "-t", "selected_tasks", multiple=True, help="Only install this task id (repeatable).")
@click.option("--category", "-c", "selected_categories", multiple=True, help="Only install this category (repeatable).")
@click.option("--dry-run", is_flag=True, help="Show what would run without running it.")
@click.option("--continue-on-error", is_flag=True, help="Keep going after a task fails.")
@click.option("--force", "-f", "force_install", is_flag=True, help="Reinstall even if the version already fits.")
@click.option("--skip-version-check", is_flag=True, help="Do not probe installed versions.")
@click.option("--mock", is_flag=True, help="Simulate commands instead of running them (implies --skip-version-check).")
@click.option(
    "--version-check-timeout",
    type=float,
    default=10,
    envvar="INITBOX_VERSION_CHECK_TIMEOUT",
    show_default=True,
    help="Seconds to wait for a version check command.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    source: str,
    selected_tasks: tuple[str, ...],
    selected_categories: tuple[str, ...],
    dry_run: bool,
    continue_on_error: bool,
    force_install: bool,
    skip_version_check: bool,
    mock: bool,
    version_check_timeout: float,
    as_json: bool,
) -> None:
    """Install the tools listed in a formula (path or URL)."""
    from initbox.core.engine.executor import ExecutorOptions, FormulaExecutor
    from initbox.core.engine.step_executor import running_as_root
    from initbox.core.engine.versions import compare_versions

    formula = _load_and_resolve(ctx, source)

    if formula.min_version and compare_versions(formula.min_version, __version__) > 0:
        click.secho(
            f"⚠️  Formula '{formula.name}' wants initbox {formula.min_version} "
            f"(running {__version__})",
            fg="yellow",
            err=True,
        )

    if formula.requires_sudo and not dry_run and not mock and not running_as_root():
        _fail(f"Formula '{formula.name}' requires root privileges; re-run with sudo")

    if mock:
        from initbox.adapters.mock import MockProcessRunner

        runner = MockProcessRunner()
    else:
        from initbox.adapters.shell.process import SubprocessRunner

        runner = SubprocessRunner()

    options = ExecutorOptions(
        selected_tasks=list(selected_tasks),
        selected_categories=list(selected_categories),
        dry_run=dry_run,
        verbose=ctx.obj.get("verbose", False),
        continue_on_error=continue_on_error,
        force_install=force_install,
        # Mock probes would report every tool as installed
        skip_version_check=skip_version_check or mock,
    )
    executor = FormulaExecutor(runner, version_check_timeout=version_check_timeout)
    result = executor.execute(formula, options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_result(result, quiet=ctx.obj.get("quiet", False), dry_run=dry_run)

    if not result.success:
        sys.exit(1)


def _render_result(result, quiet: bool, dry_run: bool) -> None:
    formula = result.formula
    if not quiet:
        title = f"\n📦 {formula.name} v{formula.version}"
        click.secho(title + (" (dry run)" if dry_run else ""), fg="cyan", bold=True)

    for r in result.tasks:
        if r.skipped and r.success:
            icon, color = "⊘", "white"
        elif r.skipped:
            icon, color = "⊘", "yellow"
        elif r.success:
            icon, color = "✓", "green"
        else:
            icon, color = "✗", "red"

        if quiet and r.ok:
            continue

        version = f" ({r.current_version})" if r.current_version else ""
        click.secho(f"   {icon} {r.task.category}/{r.task.id}{version}", fg=color, nl=False)
        if r.skip_reason:
            click.echo(f"  — {r.skip_reason}")
        else:
            click.echo()
        for s in r.steps:
            if s.error:
                marker = "optional, ignored" if s.success else "failed"
                click.echo(f"       {s.step.name}: {marker}: {s.error.strip().splitlines()[-1]}")

    if quiet:
        return

    click.echo()
    click.echo(
        f"   Installed: {len(result.installed)}  "
        f"Already installed: {len(result.already_satisfied)}  "
        f"Failed: {len(result.failed)}  "
        f"Skipped: {len(result.skipped)}  "
        f"({result.total_duration_ms}ms)"
    )
    if result.success:
        click.secho("✅ Done", fg="green")
    else:
        click.secho("❌ Install failed", fg="red")


# ── Inspect ─────────────────────────────────────────────────────


@cli.command()
@click.argument("source")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def inspect(ctx: click.Context, source: str, as_json: bool) -> None:
    """Show a formula's metadata and its resolved tasks by category."""
    from initbox.core.engine.scheduler import find_cycles, order_tasks

    formula = _load_and_resolve(ctx, source)
    ordered = order_tasks(formula.tasks)
    cycles = find_cycles(formula.tasks)

    if as_json:
        data = formula.to_document()
        data["order"] = [t.id for t in ordered]
        data["cycles"] = cycles
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n📦 {formula.name} v{formula.version}", fg="cyan", bold=True)
    if formula.description:
        click.echo(f"   {formula.description}")
    if formula.author:
        click.echo(f"   by {formula.author}")
    if formula.requires_sudo:
        click.secho("   requires sudo", fg="yellow")
    click.echo()

    for category, tasks in formula.tasks_by_category().items():
        click.secho(f"   {category}:", fg="white", bold=True)
        for task in tasks:
            constraint = f" {task.version}" if task.version else ""
            deps = f"  ← {', '.join(task.dependencies)}" if task.dependencies else ""
            click.echo(f"     • {task.id}{constraint} — {task.name}{deps}")

    click.echo()
    click.echo(f"   Install order: {' → '.join(t.id for t in ordered)}")
    for cycle in cycles:
        click.secho(f"   ⚠️  Dependency cycle: {' → '.join(cycle)}", fg="yellow")


# ── Validate ────────────────────────────────────────────────────


@cli.command()
@click.argument("source")
@click.option("--task", "is_task", is_flag=True, help="SOURCE is a task document, not a formula.")
def validate(source: str, is_task: bool) -> None:
    """Check that a formula (or task) document is well-formed."""
    from initbox.adapters.http.fetch import UrllibFetcher
    from initbox.core.config.loader import load_formula, load_task_definition

    fetcher = UrllibFetcher()
    try:
        if is_task:
            task = load_task_definition(source, fetcher=fetcher)
            click.secho(f"✅ Task '{task.id}' is valid ({len(task.steps)} steps)", fg="green")
            return
        formula = load_formula(source, fetcher=fetcher)
    except InitboxError as e:
        _fail(str(e))

    categories = {ref.category for ref in formula.tasks}
    click.secho(
        f"✅ Formula '{formula.name}' v{formula.version} is valid "
        f"({len(formula.tasks)} tasks in {len(categories)} categories)",
        fg="green",
    )


# ── Register sub-groups ─────────────────────────────────────────

from initbox.ui.cli.tasks import tasks  # noqa: E402

cli.add_command(tasks)


if __name__ == "__main__":
    cli()
