"""lbr tests commands - run tests and find the logs they produced."""

import click
from rich.table import Table

from logbridge.cli.utils import console, echo_json, get_engine, run
from logbridge.testrun.models import TestRun


def _run_table(test_run: TestRun) -> Table:
    table = Table(title=f"Test run {test_run.run_id} - {test_run.status}")
    table.add_column("Class", style="cyan")
    table.add_column("Method")
    table.add_column("Outcome")
    table.add_column("Message")
    for result in test_run.results:
        outcome = result.outcome
        style = "green" if outcome.lower() in ("pass", "passed") else "red"
        table.add_row(
            result.class_name, result.method_name, f"[{style}]{outcome}[/{style}]", result.message
        )
    return table


def _run_dict(test_run: TestRun) -> dict:
    return {
        "run_id": test_run.run_id,
        "status": test_run.status,
        "start_time": test_run.start_time,
        "terminal": test_run.is_terminal,
        "results": [
            {
                "class_name": r.class_name,
                "method_name": r.method_name,
                "outcome": r.outcome,
                "message": r.message,
                "stack_trace": r.stack_trace,
                "log_id": r.log_id,
            }
            for r in test_run.results
        ],
    }


@click.group("tests")
def tests_group() -> None:
    """Test runs of the default org."""


@tests_group.command("run")
@click.argument("class_name")
@click.option("--method", "method_name", default=None, help="Run a single test method")
@click.option("--wait/--no-wait", default=True, help="Poll until the run finishes")
@click.option("--interval", default=2.0, show_default=True, help="Seconds between polls")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run_command(
    ctx: click.Context,
    class_name: str,
    method_name: str | None,
    wait: bool,
    interval: float,
    as_json: bool,
) -> None:
    """Run the tests of CLASS_NAME."""
    engine = get_engine(ctx)

    async def _run() -> TestRun:
        submitted = await engine.tests.run_tests(class_name, method_name)
        if not wait:
            return submitted
        return await engine.tests.wait_for_run(submitted.run_id, interval=interval)

    test_run = run(_run())
    if as_json:
        echo_json(_run_dict(test_run))
    elif test_run.results:
        console.print(_run_table(test_run))
    else:
        console.print(f"Test run [cyan]{test_run.run_id}[/cyan]: {test_run.status}")


@tests_group.command("status")
@click.argument("run_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, run_id: str, as_json: bool) -> None:
    """Show the state and results of RUN_ID."""
    engine = get_engine(ctx)
    test_run = run(engine.tests.get_test_run(run_id))
    if as_json:
        echo_json(_run_dict(test_run))
    else:
        console.print(_run_table(test_run))


@tests_group.command("log")
@click.argument("run_id")
@click.option("--id-only", is_flag=True, help="Print only the matching log id")
@click.pass_context
def log_command(ctx: click.Context, run_id: str, id_only: bool) -> None:
    """Print the debug log produced by RUN_ID."""
    engine = get_engine(ctx)
    if id_only:
        entry = run(engine.tests.find_log_for_run(run_id))
        if entry is None:
            raise click.ClickException(f"No log found for test run {run_id}")
        click.echo(entry.id)
        return

    found = run(engine.tests.get_log_for_run(run_id))
    if found is None:
        raise click.ClickException(f"No log found for test run {run_id}")
    _, body = found
    click.echo(body, nl=False)
