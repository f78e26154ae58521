"""
devenv-installer — CLI entrypoint.

Usage:
    python -m devenv_installer.main --help
    python -m devenv_installer.main check
    python -m devenv_installer.main setup run --config devenv.yml
    python -m devenv_installer.main serve
"""

from __future__ import annotations

import json
import sys
import webbrowser
from pathlib import Path

import click

from devenv_installer import __version__
from devenv_installer.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="devenv-installer")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devenv.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devenv-installer — provision multi-instance dev containers."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        verbose=verbose,
        quiet=quiet,
        debug=debug,
        config_path=Path(config_path) if config_path else None,
    )
    setup_logging(
        resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Use the mock runtime (no docker).")
def check(as_json: bool, mock: bool) -> None:
    """Check preconditions: docker installed, daemon running, SSH keys."""
    from devenv_installer.adapters import get_runtime
    from devenv_installer.core.services.workspace_ops import check_existing_ssh_keys

    runtime = get_runtime(mock)
    installed = runtime.check_installed()
    running = runtime.check_running()
    keys = check_existing_ssh_keys()

    if as_json:
        click.echo(json.dumps({
            "installed": installed.model_dump(),
            "running": running.model_dump(),
            "ssh": keys,
        }, indent=2))
    else:
        def _line(label: str, ok: bool, ok_text: str, err: str) -> None:
            marker = click.style("✅", fg="green") if ok else click.style("❌", fg="red")
            click.echo(f"   {marker} {label:<9} {ok_text if ok else err}")

        click.secho("🐳 Preconditions", fg="cyan", bold=True)
        _line("Docker", installed.available, installed.detail or "installed", installed.error)
        _line("Daemon", running.available, "running", running.error)
        _line(
            "SSH keys", keys["exists"],
            ", ".join(keys["keys"]), f"none in {keys['path']}",
        )
        click.echo()

    if not (installed.available and running.available):
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=3000, type=int, help="Port number.")
@click.option("--mock", is_flag=True, help="Use the mock runtime and a scratch hosts file.")
@click.option(
    "--work-dir", "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to provision into (default: DEVENV_WORK_DIR or cwd).",
)
@click.option(
    "--static-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Front-end directory containing index.html.",
)
@click.option("--no-browser", is_flag=True, help="Don't open a browser window.")
@click.pass_context
def serve(
    ctx: click.Context,
    host: str,
    port: int,
    mock: bool,
    work_dir: Path | None,
    static_dir: Path | None,
    no_browser: bool,
) -> None:
    """Start the HTTP server for the browser front-end."""
    from devenv_installer.ui.web.server import create_app, run_server

    app = create_app(work_dir=work_dir, mock_mode=mock, static_dir=static_dir)
    url = f"http://localhost:{port}" if host in ("127.0.0.1", "0.0.0.0") else f"http://{host}:{port}"

    click.echo()
    click.secho("⚡ devenv-installer", bold=True)
    click.echo(f"   Server:   {url}")
    click.echo(f"   Work dir: {app.config['WORK_DIR']}")
    if mock:
        click.secho("   Mode: mock (no docker, scratch hosts file)", fg="yellow")
    click.echo()

    if static_dir is not None and not no_browser:
        if not webbrowser.open(url):
            click.echo(f"   Please open {url} in your browser")

    run_server(app, host=host, port=port, debug=ctx.obj.get("debug", False))


# ── Register sub-command groups from ui/cli/ ──────────────────────

from devenv_installer.ui.cli.hosts import hosts  # noqa: E402
from devenv_installer.ui.cli.setup import setup  # noqa: E402

cli.add_command(hosts)
cli.add_command(setup)


if __name__ == "__main__":
    cli()
