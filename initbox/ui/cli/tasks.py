"""
CLI commands for browsing the task catalog.

Thin wrappers over ``initbox.core.config.catalog``.
"""

from __future__ import annotations

import json
import sys

import click


def _catalog(ctx: click.Context):
    from initbox.core.config.catalog import default_catalog

    return default_catalog(ctx.obj.get("tasks_dirs", ()) if ctx.obj else ())


@click.group()
def tasks() -> None:
    """Tasks — list and show installable tools."""


@tasks.command("list")
@click.option("--tag", default=None, help="Only tasks with this tag.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_tasks(ctx: click.Context, tag: str | None, as_json: bool) -> None:
    """List tasks in the catalog."""
    definitions = sorted(_catalog(ctx).definitions(), key=lambda t: t.id)
    if tag:
        definitions = [t for t in definitions if tag in t.tags]

    if as_json:
        click.echo(json.dumps([t.to_document() for t in definitions], indent=2))
        return

    if not definitions:
        click.secho("⚠️  No tasks found", fg="yellow")
        return

    click.secho(f"🧰 Tasks ({len(definitions)}):", fg="cyan", bold=True)
    for task in definitions:
        tags = f"  [{', '.join(task.tags)}]" if task.tags else ""
        click.echo(f"   {task.id:<16} {task.name}{tags}")


@tasks.command("show")
@click.argument("task_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show_task(ctx: click.Context, task_id: str, as_json: bool) -> None:
    """Show one task's definition."""
    catalog = _catalog(ctx)
    task = catalog.get_task(task_id)
    if task is None:
        click.secho(f"❌ Unknown task '{task_id}'", fg="red", err=True)
        click.echo(f"   Available: {', '.join(sorted(catalog.list_task_ids()))}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(task.to_document(), indent=2))
        return

    click.secho(f"🧰 {task.name} ({task.id})", fg="cyan", bold=True)
    if task.description:
        click.echo(f"   {task.description}")
    if task.homepage:
        click.echo(f"   {task.homepage}")
    if task.dependencies:
        click.echo(f"   Depends on: {', '.join(task.dependencies)}")
    if task.version_command:
        click.echo(f"   Version check: {task.version_command}")
    if task.requires_sudo:
        click.secho("   requires sudo", fg="yellow")

    click.echo()
    click.secho(f"   Steps ({len(task.steps)}):", fg="white", bold=True)
    for i, step in enumerate(task.steps, 1):
        flags = []
        if step.optional:
            flags.append("optional")
        if step.platforms:
            flags.append("/".join(step.platforms))
        suffix = f"  ({', '.join(flags)})" if flags else ""
        click.echo(f"   {i}. {step.name}: {step.type.value} {step.command}{suffix}")
