"""lbr logs commands - list, show, download and delete debug logs."""

import click
import questionary
from rich.table import Table

from logbridge.cli.utils import console, echo_json, err_console, get_engine, run
from logbridge.logs.models import LogEntity


def _log_table(entries: list[LogEntity]) -> Table:
    table = Table(title="Debug logs")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("User")
    table.add_column("Operation")
    table.add_column("Status")
    table.add_column("Size", justify="right")
    table.add_column("Time")
    table.add_column("Local", justify="center")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.log_user,
            entry.operation,
            entry.status,
            str(entry.log_length),
            entry.timestamp,
            "[green]✓[/green]" if entry.downloaded else "",
        )
    return table


@click.group("logs")
def logs_group() -> None:
    """Debug logs of the default org."""


@logs_group.command("list")
@click.option("--refresh", is_flag=True, help="Ignore the cache and list logs from the org")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_command(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """List recent debug logs."""
    engine = get_engine(ctx)
    entries = run(engine.logs.list_logs(force_refresh=refresh))
    if as_json:
        echo_json([e.model_dump() for e in entries])
        return
    if not entries:
        console.print("[yellow]No debug logs found[/yellow]")
        return
    console.print(_log_table(entries))


@logs_group.command("get")
@click.argument("log_id")
@click.pass_context
def get_command(ctx: click.Context, log_id: str) -> None:
    """Print the body of LOG_ID."""
    engine = get_engine(ctx)
    click.echo(run(engine.logs.get_log_body(log_id)), nl=False)


@logs_group.command("download")
@click.argument("log_ids", nargs=-1, required=True)
@click.pass_context
def download_command(ctx: click.Context, log_ids: tuple[str, ...]) -> None:
    """Download one or more logs into the project's logs directory."""
    engine = get_engine(ctx)
    for log_id in log_ids:
        path = run(engine.logs.download_log(log_id))
        console.print(f"  [green]✓[/green] {log_id} → {path}")


@logs_group.command("delete")
@click.argument("log_ids", nargs=-1)
@click.option("--all", "delete_all", is_flag=True, help="Delete every log in the org")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_command(
    ctx: click.Context, log_ids: tuple[str, ...], delete_all: bool, yes: bool
) -> None:
    """Delete LOG_IDS (or every log with --all) from the default org."""
    if not log_ids and not delete_all:
        raise click.UsageError("Pass log ids or --all")
    engine = get_engine(ctx)

    if not yes:
        what = "every debug log in the org" if delete_all else f"{len(log_ids)} log(s)"
        answer = questionary.confirm(f"Delete {what}? This cannot be undone.", default=False).ask()
        if not answer:
            err_console.print("[dim]Cancelled[/dim]")
            return

    if delete_all:
        count = run(engine.logs.delete_all_logs())
    else:
        count = run(engine.logs.delete_logs(list(log_ids)))
    console.print(f"[green]Deleted {count} log(s)[/green]")
