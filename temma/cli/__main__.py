"""Temma CLI - Main Entry Point.

Commands:
    serve   - Run the application with uvicorn
    routes  - List the configured routes
    config  - Show the merged configuration
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from . import __version__, __cli_name__
from .utils.colors import (
    banner, dim, error, info, kv, section, table,
    _CHECK, _CROSS,
)


class TemmaGroup(click.Group):
    """Click group subclass with branded help output."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        # Only show the banner for the root group
        if ctx.parent is None:
            banner("Temma", subtitle=f"v{__version__}  {_CHECK}  MVC dispatch framework")
            click.echo()
        super().format_help(ctx, formatter)

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Format command listing with aligned columns."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=48)))

        if commands:
            with formatter.section(click.style("Commands", fg="cyan", bold=True)):
                max_len = max(len(c[0]) for c in commands) + 2
                for name, help_text in commands:
                    formatter.write(f"  {click.style(name.ljust(max_len), fg='green')} {help_text}\n")


app_path_option = click.option(
    "--app-path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Application root (defaults to the current directory)",
)


@click.group(cls=TemmaGroup)
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output")
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool):
    """Temma application tooling.

    \b
    Quick start:
      temma routes
      temma serve --reload
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# ============================================================================
# Commands
# ============================================================================

@cli.command("serve")
@app_path_option
@click.option("--host", type=str, default="127.0.0.1", help="Server host")
@click.option("--port", type=int, default=8000, help="Server port")
@click.option("--reload/--no-reload", default=False, help="Restart on code changes")
@click.option("--workers", type=int, default=None, help="Number of worker processes")
@click.pass_context
def serve(ctx, app_path: Optional[Path], host: str, port: int, reload: bool, workers: Optional[int]):
    """
    Run the application with uvicorn.

    Examples:
      temma serve
      temma serve --app-path=/srv/myapp --port=3000
      temma serve --reload
    """
    from .commands.serve import run_server

    root = app_path or Path.cwd()
    if not ctx.obj["quiet"]:
        section("Server")
        kv("App path", str(root))
        kv("Listening", f"http://{host}:{port}")
        kv("Reload", "on" if reload else "off")
        click.echo()

    try:
        run_server(
            root,
            host=host,
            port=port,
            reload=reload,
            workers=workers,
            verbose=ctx.obj["verbose"],
        )
    except KeyboardInterrupt:
        if not ctx.obj["quiet"]:
            click.echo()
            info(f"  {_CHECK} Server stopped")
    except Exception as e:
        error(f"  {_CROSS} Server error: {e}")
        sys.exit(1)


@cli.command("routes")
@app_path_option
@click.pass_context
def routes(ctx, app_path: Optional[Path]):
    """
    List the routes declared under x-router.

    Examples:
      temma routes
      temma routes --app-path=/srv/myapp
    """
    from .commands.inspect import load_config, route_rows

    try:
        rows = route_rows(load_config(app_path))
    except Exception as e:
        error(f"  {_CROSS} Invalid routes: {e}")
        sys.exit(1)

    if not rows:
        dim("  No routes configured")
        return
    if not ctx.obj["quiet"]:
        section(f"Routes ({len(rows)})")
    table(["Method", "Route", "Exec"], rows)


@cli.command("config")
@app_path_option
@click.argument("key", required=False)
@click.option("--json", "as_json", is_flag=True, help="JSON output instead of YAML")
@click.pass_context
def config(ctx, app_path: Optional[Path], key: Optional[str], as_json: bool):
    """
    Show the merged configuration, or one dotted entry of it.

    Examples:
      temma config
      temma config application.defaultController
      temma config x-router --json
    """
    from .commands.inspect import config_value, load_config

    try:
        value = config_value(load_config(app_path), key)
    except Exception as e:
        error(f"  {_CROSS} Unable to load configuration: {e}")
        sys.exit(1)

    if value is None and key:
        error(f"  {_CROSS} No configuration entry '{key}'")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(value, indent=2, default=str))
    else:
        click.echo(yaml.safe_dump(value, default_flow_style=False, sort_keys=False).rstrip())


def main():
    """Entry point for `temma` command."""
    cli(obj={})


if __name__ == "__main__":
    main()
