"""
CLI for the autoload analyzer.

Lists autoloaded options grouped by source and lets an operator switch
autoload off/on or delete options straight from a terminal.
"""

import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from autoload_analyzer.config import AnalyzerConfig
from autoload_analyzer.engine import AutoloadManager, BulkResult, Direction
from autoload_analyzer.errors import AuthorizationError, AutoloadError
from autoload_analyzer.gate import LocalOperatorGate
from autoload_analyzer.store import Autoload, SettingsStore, SettingsStoreError


console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_config() -> AnalyzerConfig:
    """Load configuration from environment, exiting on bad values."""
    try:
        return AnalyzerConfig.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("\nCheck these environment variables:")
        console.print("  AOA_DB_PATH, AOA_TABLE_PREFIX, AOA_HOST, AOA_PORT")
        sys.exit(1)


def get_manager(ctx: click.Context) -> AutoloadManager:
    """Open the store named by --db / config and wrap it in a manager."""
    config: AnalyzerConfig = ctx.obj["config"]
    try:
        store = SettingsStore(config.db_path, table_prefix=config.table_prefix)
    except (SettingsStoreError, OSError) as e:
        console.print(f"[red]Error:[/red] Cannot open settings database {config.db_path}: {e}")
        sys.exit(1)
    ctx.call_on_close(store.close)
    return AutoloadManager(store)


def _require_admin() -> None:
    if not LocalOperatorGate().has_admin_capability():
        raise AuthorizationError("You do not have permission to manage options")


def _print_bulk_result(result: BulkResult) -> None:
    style = "green" if result.ok else "yellow"
    console.print(f"[{style}]{result.message}[/{style}]")
    for name in result.unchanged:
        console.print(f"  [dim]unchanged[/dim] {name}")
    for issue in result.skipped:
        console.print(f"  [yellow]skipped[/yellow] {issue.name or '<empty>'}: {issue.reason}")
    for issue in result.failed:
        console.print(f"  [red]failed[/red] {issue.name}: {issue.reason}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--db", "db_path", help="Path to the SQLite settings database (overrides AOA_DB_PATH)")
@click.option("--prefix", "table_prefix", help="Options table prefix (overrides AOA_TABLE_PREFIX)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, db_path: Optional[str], table_prefix: Optional[str]):
    """Autoload Analyzer - find and tame heavy autoloaded options."""
    setup_logging(verbose)
    config = get_config()
    if db_path:
        config.db_path = db_path
    if table_prefix is not None:
        try:
            config = AnalyzerConfig(
                db_path=config.db_path,
                table_prefix=table_prefix,
                host=config.host,
                port=config.port,
                admin_token=config.admin_token,
            )
        except ValueError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            sys.exit(1)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command(name="list")
@click.option("--disabled", is_flag=True, help="Show options with autoload disabled instead")
@click.option("--json", "as_json", is_flag=True, help="Print the listing as JSON")
@click.pass_context
def list_options(ctx: click.Context, disabled: bool, as_json: bool):
    """List options grouped by source, largest first."""
    manager = get_manager(ctx)
    flag = Autoload.SKIP if disabled else Autoload.LOAD

    try:
        listing = manager.list_by_autoload(flag)
    except AutoloadError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(listing.model_dump(mode="json"), indent=2))
        return

    if listing.total_count == 0:
        if disabled:
            console.print("[yellow]No options with autoload disabled[/yellow]")
        else:
            console.print("[yellow]No autoloaded options[/yellow]")
        return

    console.print(Panel(
        f"Options: [cyan]{listing.total_count}[/cyan]\n"
        f"Total size: [cyan]{listing.total_size_display}[/cyan]",
        title="Autoload disabled" if disabled else "Autoloaded options",
    ))

    table = Table(show_header=True)
    table.add_column("Source", style="magenta")
    table.add_column("Option", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Note", style="dim")

    for group in listing.groups:
        for row in group.options:
            table.add_row(
                group.source,
                row.name,
                row.size_display,
                "core option" if row.protected else "",
            )

    console.print(table)


def _toggle(ctx: click.Context, names: tuple, direction: Direction, yes: bool) -> None:
    manager = get_manager(ctx)

    if not yes:
        if direction is Direction.DISABLE:
            prompt = f"Disable autoload for {', '.join(names)}? This may affect the site."
        else:
            prompt = f"Enable autoload for {', '.join(names)}?"
        if not click.confirm(prompt):
            console.print("Cancelled")
            return

    try:
        _require_admin()
        if len(names) == 1:
            message = manager.toggle_autoload(names[0], direction)
            console.print(f"[green][OK][/green] {message}")
            return
    except AutoloadError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    result = manager.bulk_toggle_autoload(names, direction)
    _print_bulk_result(result)
    if not result.ok:
        sys.exit(1)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def disable(ctx: click.Context, names: tuple, yes: bool):
    """Stop autoloading one or more options."""
    _toggle(ctx, names, Direction.DISABLE, yes)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def enable(ctx: click.Context, names: tuple, yes: bool):
    """Autoload one or more options again."""
    _toggle(ctx, names, Direction.ENABLE, yes)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, names: tuple, yes: bool):
    """Delete options whose autoload is already disabled."""
    manager = get_manager(ctx)

    if not yes:
        if not click.confirm(f"Permanently delete {', '.join(names)}?"):
            console.print("Cancelled")
            return

    try:
        _require_admin()
        if len(names) == 1:
            message = manager.delete_option(names[0])
            console.print(f"[green][OK][/green] {message}")
            return
    except AutoloadError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    result = manager.bulk_delete_options(names)
    _print_bulk_result(result)
    if not result.ok:
        sys.exit(1)


@main.command()
@click.option("--host", help="Bind address (overrides AOA_HOST)")
@click.option("--port", type=int, help="Port (overrides AOA_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
@click.pass_context
def dashboard(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool):
    """Serve the JSON API used by the admin dashboard."""
    import os

    import uvicorn

    config: AnalyzerConfig = ctx.obj["config"]
    bind_host = host or config.host
    bind_port = port or config.port

    # The app reads its config from the environment at startup
    os.environ["AOA_DB_PATH"] = config.db_path
    os.environ["AOA_TABLE_PREFIX"] = config.table_prefix
    os.environ["AOA_HOST"] = bind_host
    os.environ["AOA_PORT"] = str(bind_port)

    console.print(f"Listening on http://{bind_host}:{bind_port}")
    if config.admin_token is None:
        console.print("[dim]No AOA_ADMIN_TOKEN set: changes allowed from this machine only[/dim]")

    uvicorn.run(
        "autoload_analyzer.api.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
