"""Command registry - modern and legacy command forms per operation."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any

from logbridge.core.errors import InternalError
from logbridge.tool.models import Dialect, Operation


@dataclass(frozen=True, slots=True)
class Opt:
    """Fragment rendered only when *param* is set (non-empty, non-False)."""

    fragment: str
    param: str


Part = str | Opt


@dataclass
class CommandSpec:
    """Definition of one operation in both dialects.

    Templates are sequences of parts following the executable. Plain string
    parts are always rendered; ``{name}`` placeholders are replaced with
    shell-quoted parameter values.
    """

    operation: Operation
    modern: tuple[Part, ...]
    legacy: tuple[Part, ...] | None = None
    description: str = ""
    # Parameters that must be present for any dialect
    required: frozenset[str] = field(default_factory=frozenset)

    def dialects(self) -> list[Dialect]:
        """Dialects in the order they should be attempted."""
        if self.legacy is None:
            return [Dialect.MODERN]
        return [Dialect.MODERN, Dialect.LEGACY]

    def template(self, dialect: Dialect) -> tuple[Part, ...]:
        if dialect is Dialect.MODERN:
            return self.modern
        if self.legacy is None:
            raise InternalError.unexpected(
                f"no legacy form for {self.operation.value}", operation=self.operation.value
            )
        return self.legacy

    def render(self, dialect: Dialect, executable: str, params: dict[str, Any]) -> str:
        missing = [name for name in sorted(self.required) if params.get(name) in (None, "")]
        if missing:
            raise InternalError.unexpected(
                f"missing parameters for {self.operation.value}: {', '.join(missing)}",
                operation=self.operation.value,
            )

        quoted = {k: _quote(v) for k, v in params.items() if v is not None}
        rendered = [shlex.quote(executable)]
        for part in self.template(dialect):
            if isinstance(part, Opt):
                value = params.get(part.param)
                if value is None or value is False or value == "":
                    continue
                rendered.append(part.fragment.format(**quoted))
            else:
                rendered.append(part.format(**quoted))
        return " ".join(rendered)


def _quote(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return shlex.quote(str(value))


class CommandRegistry:
    """Registry of command specs."""

    def __init__(self) -> None:
        self._specs: dict[Operation, CommandSpec] = {}

    def register(self, spec: CommandSpec) -> None:
        self._specs[spec.operation] = spec

    def get(self, operation: Operation) -> CommandSpec:
        spec = self._specs.get(operation)
        if spec is None:
            raise InternalError.unexpected(
                f"no command registered for {operation.value}", operation=operation.value
            )
        return spec

    def all(self) -> list[CommandSpec]:
        return list(self._specs.values())

    def clear(self) -> None:
        self._specs.clear()


# Global registry
commands = CommandRegistry()


def build_command(
    operation: Operation,
    dialect: Dialect,
    *,
    executable: str,
    **params: Any,
) -> str:
    """Render the command line for *operation* in *dialect*."""
    return commands.get(operation).render(dialect, executable, params)
