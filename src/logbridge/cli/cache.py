"""lbr cache commands - drop cached state."""

import click
import questionary

from logbridge.cli.utils import console, err_console, get_engine


@click.group("cache")
def cache_group() -> None:
    """Cached logs, orgs and test classes."""


@cache_group.command("clear")
@click.option("--alias", default=None, help="Only clear the cache of this org")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clear_command(ctx: click.Context, alias: str | None, yes: bool) -> None:
    """Clear cached state (downloaded log files are kept)."""
    engine = get_engine(ctx)
    if alias is None and not yes:
        answer = questionary.confirm("Clear the cache of every org?", default=False).ask()
        if not answer:
            err_console.print("[dim]Cancelled[/dim]")
            return
    engine.clear_cache(alias)
    console.print(f"[green]Cache cleared[/green] ({alias or 'all orgs'})")
