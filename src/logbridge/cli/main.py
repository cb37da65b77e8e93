"""LogBridge CLI - lbr command."""

from pathlib import Path

import click

from logbridge.cli.cache import cache_group
from logbridge.cli.logs import logs_group
from logbridge.cli.orgs import orgs_group
from logbridge.cli.tests import tests_group
from logbridge.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="lbr")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--project",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root (default: found from the current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, project: Path | None) -> None:
    """LogBridge - debug logs, test runs and orgs through the Salesforce CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["project"] = project
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(logs_group)
cli.add_command(orgs_group)
cli.add_command(tests_group)
cli.add_command(cache_group)


if __name__ == "__main__":
    cli()
