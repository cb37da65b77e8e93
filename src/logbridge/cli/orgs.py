"""lbr orgs commands - list orgs and choose the default one."""

import click
from rich.table import Table

from logbridge.cli.utils import console, echo_json, get_engine, run
from logbridge.orgs.models import OrgCategory, OrgGroups

_CATEGORY_TITLES = {
    OrgCategory.DEVHUB: "Dev Hubs",
    OrgCategory.SANDBOX: "Sandboxes",
    OrgCategory.SCRATCH: "Scratch Orgs",
    OrgCategory.STANDARD: "Non-Scratch Orgs",
    OrgCategory.OTHER: "Other",
}


def _org_table(groups: OrgGroups) -> Table:
    table = Table(title="Orgs")
    table.add_column("Category")
    table.add_column("Alias", style="cyan")
    table.add_column("Username")
    table.add_column("Instance")
    table.add_column("Default", justify="center")
    for category, title in _CATEGORY_TITLES.items():
        for org in groups.bucket(category):
            table.add_row(
                title,
                org.alias or "",
                org.username,
                org.instance_url,
                "[green]✓[/green]" if org.is_default else "",
            )
    return table


@click.group("orgs")
def orgs_group() -> None:
    """Authorized orgs."""


@orgs_group.command("list")
@click.option("--refresh", is_flag=True, help="Ignore the cached listing")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_command(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """List connected orgs by category."""
    engine = get_engine(ctx)
    if refresh:
        outcome = run(engine.orgs.refresh_orgs())
        groups = outcome.value or OrgGroups()
    else:
        groups = run(engine.orgs.list_orgs())
    if as_json:
        echo_json(groups.model_dump(mode="json"))
        return
    if not groups.all():
        console.print("[yellow]No connected orgs found[/yellow]")
        return
    console.print(_org_table(groups))


@orgs_group.command("use")
@click.argument("alias")
@click.pass_context
def use_command(ctx: click.Context, alias: str) -> None:
    """Make ALIAS the default org."""
    engine = get_engine(ctx)
    run(engine.orgs.set_default_org(alias))
    console.print(f"[green]Default org set to[/green] {alias}")


@orgs_group.command("current")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def current_command(ctx: click.Context, as_json: bool) -> None:
    """Show the default org."""
    engine = get_engine(ctx)
    alias = run(engine.orgs.current_alias())
    if as_json:
        echo_json({"alias": alias})
    else:
        click.echo(alias)
