"""
CLI commands for provisioning runs.

``setup run`` hosts the local control channel: it subscribes to the
push channels and renders them in the terminal while the pipeline runs.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _load_config(ctx: click.Context, work_dir: Path | None):  # type: ignore[no-untyped-def]
    from devenv_installer.core.config.loader import ConfigError, load_setup_config

    overrides = {"workDir": str(work_dir)} if work_dir else None
    try:
        return load_setup_config(ctx.obj.get("config_path"), overrides=overrides)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _resolve_work_dir(ctx: click.Context, work_dir: Path | None) -> Path:
    """Explicit flag > setup file's directory > DEVENV_WORK_DIR / cwd."""
    if work_dir is not None:
        return work_dir.resolve()
    config_path: Path | None = ctx.obj.get("config_path")
    if config_path is None:
        from devenv_installer.core.config.loader import find_setup_file

        config_path = find_setup_file()
    if config_path is not None:
        return config_path.parent.resolve()
    from devenv_installer.core.config.loader import default_work_dir

    return default_work_dir()


_work_dir_option = click.option(
    "--work-dir", "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to provision into (overrides the setup file).",
)


@click.group()
def setup() -> None:
    """Provisioning — run the setup pipeline, inspect or stop containers."""


@setup.command("run")
@_work_dir_option
@click.option("--mock", is_flag=True, help="Use the mock runtime and a scratch hosts file.")
@click.pass_context
def run(ctx: click.Context, work_dir: Path | None, mock: bool) -> None:
    """Run the full setup pipeline described by devenv.yml."""
    from devenv_installer.core.services.setup_ops import build_installer
    from devenv_installer.ui.channel import ControlChannel

    config = _load_config(ctx, work_dir)
    quiet = ctx.obj.get("quiet", False)

    installer = build_installer(work_dir=config.work_dir, mock_mode=mock)
    channel = ControlChannel(installer)

    def on_progress(event: dict) -> None:
        if event["percent"] < 0:
            return  # the final error is printed below
        click.secho(f"[{event['percent']:>3}%] ", fg="cyan", nl=False)
        click.echo(event["message"])

    def on_output(chunk: str) -> None:
        if not quiet:
            click.echo(chunk, nl=False)

    channel.on("setup-progress", on_progress)
    channel.on("docker-output", on_output)

    result = channel.invoke("run-setup", config)

    click.echo()
    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        if result.get("manual"):
            click.echo()
            click.echo(result["manual"])
        sys.exit(1)

    click.secho("✅ Setup complete", fg="green", bold=True)
    for url in result.get("urls", []):
        click.echo(f"   {url}")
    click.echo()


@setup.command("status")
@_work_dir_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, work_dir: Path | None, as_json: bool) -> None:
    """Show container states (advisory)."""
    from devenv_installer.adapters import get_runtime

    states = get_runtime().status(_resolve_work_dir(ctx, work_dir))

    if as_json:
        click.echo(json.dumps([s.model_dump() for s in states], indent=2))
        return

    if not states:
        click.secho("No containers found", fg="yellow")
        return

    for s in states:
        color = "green" if s.state == "running" else "yellow"
        click.echo(f"   {s.name or s.service:<16} ", nl=False)
        click.secho(f"{s.state:<10}", fg=color, nl=False)
        click.echo(f" {s.status}")


@setup.command("down")
@_work_dir_option
@click.pass_context
def down(ctx: click.Context, work_dir: Path | None) -> None:
    """Stop and remove the containers."""
    from devenv_installer.adapters import get_runtime

    result = get_runtime().stop(_resolve_work_dir(ctx, work_dir))
    if result.failed:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)
    click.secho("✅ Containers stopped", fg="green")
