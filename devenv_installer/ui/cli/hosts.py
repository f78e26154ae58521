"""
CLI commands for the hosts file.

Thin wrappers over ``core.services.hosts_ops``.
"""

from __future__ import annotations

import json
import sys

import click

from devenv_installer.core.models.config import MAX_INSTANCES

_instances_option = click.option(
    "--instances", "-n",
    type=click.IntRange(1, MAX_INSTANCES),
    default=5,
    show_default=True,
    help="Number of instances.",
)


@click.group()
def hosts() -> None:
    """Hosts file — check and add instance-<letter> entries."""


@hosts.command("check")
@_instances_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def check(instances: int, as_json: bool) -> None:
    """Show which hosts entries are missing (read-only)."""
    from devenv_installer.core.services.hosts_ops import default_mutator

    mutator = default_mutator()
    result = mutator.check_entries(instances)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if result.all_present:
        click.secho(f"✅ All {instances} entries present in {mutator.hosts_file}", fg="green")
        return

    click.secho(f"⚠️  Missing from {mutator.hosts_file}:", fg="yellow")
    for name in result.missing:
        click.echo(f"   127.0.0.1 {name}")


@hosts.command("add")
@_instances_option
def add(instances: int) -> None:
    """Append missing entries (prompts for elevation when needed)."""
    from devenv_installer.core.services.hosts_ops import default_mutator

    mutator = default_mutator()
    result = mutator.ensure_entries(instances)

    if result.ok:
        added = result.data.get("added") or []
        if added:
            click.secho(f"✅ Added {len(added)} entr{'y' if len(added) == 1 else 'ies'}", fg="green")
        else:
            click.secho("✅ All entries already exist", fg="green")
        return

    click.secho(f"❌ {result.error}", fg="red")
    if result.manual:
        click.echo()
        click.echo(result.manual)
    sys.exit(1)
