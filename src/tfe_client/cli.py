"""Command line interface for tfe-client.

A small read-only CLI on top of the library, configured from the
environment (``TFE_TOKEN``, ``TFE_ADDRESS``/``TFE_HOSTNAME``).
"""

import asyncio
import logging
import sys
import threading
from typing import Any, Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .api_clients.runs_client import RunIncludeOpt, RunReadOptions
from .api_clients.workspaces_client import WorkspaceListOptions
from .client import Client
from .config import ClientConfig
from .exceptions import APIError, TFEError

logger = logging.getLogger(__name__)

console = Console()


def run_async(coro):
    """Run a coroutine from synchronous CLI code.

    Uses ``asyncio.run`` when no loop is running; otherwise runs the
    coroutine on a fresh loop in a helper thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    result = None
    exception: Optional[BaseException] = None

    def run_in_new_loop():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except BaseException as e:
            exception = e

    thread = threading.Thread(target=run_in_new_loop)
    thread.start()
    thread.join()

    if exception is not None:
        raise exception
    return result


def _display_error(error: TFEError) -> None:
    lines = [str(error)]
    if isinstance(error, APIError) and error.status_code:
        lines.append(f"[dim]HTTP status: {error.status_code}[/dim]")
    console.print(
        Panel("\n".join(lines), title=f"❌ {type(error).__name__}", border_style="red")
    )


def _with_client(ctx: click.Context, action: Callable[[Client], Awaitable[Any]]) -> Any:
    """Create a client, run ``action`` with it and close it again.

    Library errors are rendered in a panel and exit with status 1.
    """

    async def _run():
        async with Client(ctx.obj["config"]) as client:
            return await action(client)

    try:
        return run_async(_run())
    except TFEError as e:
        logger.error(f"Command failed: {e}")
        _display_error(e)
        sys.exit(1)


def _fmt(value: Any) -> str:
    return "-" if value is None or value == "" else str(value)


@click.group()
@click.option("--address", envvar="TFE_ADDRESS", help="API address, e.g. https://app.terraform.io")
@click.option("--token", envvar="TFE_TOKEN", help="API token")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="tfe-client")
@click.pass_context
def cli(ctx, address: Optional[str], token: Optional[str], verbose: bool):
    """Inspect HCP Terraform and Terraform Enterprise from the command line."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    overrides = {}
    if address:
        overrides["address"] = address
    if token:
        overrides["token"] = token
    try:
        ctx.obj = {"config": ClientConfig.from_env(**overrides)}
    except TFEError as e:
        _display_error(e)
        sys.exit(1)


@cli.command()
@click.pass_context
def ping(ctx):
    """Check connectivity and show server metadata."""
    meta = _with_client(ctx, lambda client: client.ping())

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("API version", _fmt(meta.api_version))
    table.add_row("TFE version", _fmt(meta.tfe_version))
    table.add_row("App name", _fmt(meta.app_name))
    table.add_row("Rate limit", _fmt(meta.rate_limit))
    table.add_row("Enterprise", "yes" if meta.is_enterprise else "no")
    console.print(Panel(table, title="✅ Connected", title_align="left", border_style="green"))


@cli.group()
def organizations():
    """Organization commands."""


@organizations.command("list")
@click.pass_context
def organizations_list(ctx):
    """List organizations visible to the token."""
    page = _with_client(ctx, lambda client: client.organizations.list())

    table = Table(title="Organizations")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Created")
    for org in page:
        table.add_row(org.name, _fmt(org.email), _fmt(org.created_at))
    console.print(table)


@cli.group()
def workspaces():
    """Workspace commands."""


@workspaces.command("list")
@click.argument("organization")
@click.option("--search", help="Filter by partial workspace name")
@click.option("--page", type=int, default=None, help="Page number")
@click.pass_context
def workspaces_list(ctx, organization: str, search: Optional[str], page: Optional[int]):
    """List workspaces of ORGANIZATION."""
    options = WorkspaceListOptions(search=search, page_number=page)
    result = _with_client(ctx, lambda client: client.workspaces.list(organization, options))

    table = Table(title=f"Workspaces in {organization}")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Terraform")
    table.add_column("Locked")
    for ws in result:
        table.add_row(ws.name, ws.id, _fmt(ws.terraform_version), "🔒" if ws.locked else "")
    console.print(table)
    if result.pagination is not None:
        console.print(
            f"Page {result.pagination.current_page} of {_fmt(result.pagination.total_pages)}",
            style="dim",
        )


@workspaces.command("show")
@click.argument("organization")
@click.argument("name")
@click.pass_context
def workspaces_show(ctx, organization: str, name: str):
    """Show workspace NAME of ORGANIZATION."""
    ws = _with_client(ctx, lambda client: client.workspaces.read(organization, name))

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="bold cyan", width=18)
    table.add_column("Value")
    table.add_row("ID", ws.id)
    table.add_row("Description", _fmt(ws.description))
    table.add_row("Execution mode", _fmt(ws.execution_mode))
    table.add_row("Terraform", _fmt(ws.terraform_version))
    table.add_row("Auto apply", "yes" if ws.auto_apply else "no")
    table.add_row("Locked", "yes" if ws.locked else "no")
    table.add_row("Resources", str(ws.resource_count))
    if ws.current_run is not None:
        table.add_row("Current run", ws.current_run.id)
    console.print(Panel(table, title=f"📦 {ws.name}", title_align="left"))


@cli.group()
def runs():
    """Run commands."""


@runs.command("show")
@click.argument("run_id")
@click.pass_context
def runs_show(ctx, run_id: str):
    """Show run RUN_ID."""
    options = RunReadOptions(include=[RunIncludeOpt.WORKSPACE])
    run = _with_client(ctx, lambda client: client.runs.read(run_id, options))

    status_style = {"applied": "green", "errored": "red", "canceled": "yellow"}.get(
        run.status or "", "blue"
    )
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="bold cyan", width=15)
    table.add_column("Value")
    table.add_row("Status", f"[{status_style}]{_fmt(run.status)}[/{status_style}]")
    table.add_row("Message", _fmt(run.message))
    table.add_row("Workspace", _fmt(run.workspace.name if run.workspace else None))
    table.add_row("Created", _fmt(run.created_at))
    table.add_row("Has changes", "yes" if run.has_changes else "no")
    console.print(Panel(table, title=f"Run {run.id}", title_align="left", border_style=status_style))


def main():
    cli()


if __name__ == "__main__":
    main()
