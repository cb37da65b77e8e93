"""CLI utilities."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console

from logbridge.core.errors import LogBridgeError
from logbridge.core.logging import clear_request_id, configure_logging, set_request_id
from logbridge.engine import LogBridgeEngine

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


def get_engine(ctx: click.Context) -> LogBridgeEngine:
    """Engine for the project selected with ``--project`` (or found from cwd).

    The project's ``logging`` section replaces the startup logging setup
    unless ``--verbose`` was given.
    """
    obj = ctx.ensure_object(dict)
    engine = obj.get("engine")
    if engine is None:
        project: Path | None = obj.get("project")
        try:
            engine = LogBridgeEngine.open(project)
        except LogBridgeError as e:
            raise click.ClickException(e.message) from e
        if not obj.get("verbose"):
            configure_logging(config=engine.config.logging)
        obj["engine"] = engine
    return engine


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run an engine coroutine, turning classified errors into CLI errors."""
    set_request_id()
    try:
        return asyncio.run(coro)
    except LogBridgeError as e:
        raise click.ClickException(e.message) from e
    finally:
        clear_request_id()


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))
