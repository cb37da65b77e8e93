"""CLI gateway - run logical operations with dialect fallback and error classification."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from logbridge.config.models import ToolConfig
from logbridge.core.errors import (
    CommandFailedError,
    DialectMismatchError,
    LogBridgeError,
    MalformedResponseError,
    NoDefaultEnvironmentError,
    ToolUnavailableError,
)
from logbridge.tool.dialects import build_command, commands
from logbridge.tool.fallback import StrategiesExhaustedError, first_success
from logbridge.tool.models import Dialect, Operation
from logbridge.tool.process import invoke
from logbridge.tool.response import NotStructured, Structured, extract_records, parse_envelope

log = structlog.get_logger(__name__)

# Substrings (lower-cased) of tool output that point at a missing or unknown target org
_ORG_CONTEXT_MARKERS = (
    "nodefaultenverror",
    "no default",
    "no target-org",
    "no target org",
    "noorgfound",
    "namedorgnotfound",
    "no authorization information found",
    "no org configuration found",
)


@dataclass
class _DialectStrategy:
    """Run one operation in one dialect."""

    gateway: CliGateway
    operation: Operation
    dialect: Dialect
    params: dict[str, Any]
    expect_json: bool
    max_buffer: int | None

    @property
    def name(self) -> str:
        return self.dialect.value

    async def attempt(self) -> Structured | str:
        command = self.gateway.command(self.operation, self.dialect, **self.params)
        output = await self.gateway.invoke(command, max_buffer=self.max_buffer)
        if not self.expect_json:
            return output
        parsed = parse_envelope(output)
        if isinstance(parsed, NotStructured):
            raise MalformedResponseError.missing(self.operation.value, "output is not JSON")
        return parsed


class CliGateway:
    """Entry point for running CLI operations.

    Every operation is attempted in the modern dialect first and, only if
    that fails, in the legacy dialect. Failures of both are classified into
    a missing tool, a missing default org, or a composed dialect error.
    """

    def __init__(
        self,
        config: ToolConfig | None = None,
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self._config = config or ToolConfig()
        self._cwd = cwd
        self._env = env

    @property
    def config(self) -> ToolConfig:
        return self._config

    def executable(self, dialect: Dialect) -> str:
        if dialect is Dialect.LEGACY:
            return self._config.legacy_executable
        return self._config.executable

    def command(self, operation: Operation, dialect: Dialect, **params: Any) -> str:
        return build_command(operation, dialect, executable=self.executable(dialect), **params)

    async def invoke(self, command: str, *, max_buffer: int | None = None) -> str:
        """Run one fully formed command line with configured limits."""
        log.debug("command_invoked", command=command)
        return await invoke(
            command,
            max_buffer=max_buffer or self._config.max_buffer_bytes,
            cwd=self._cwd,
            env=self._env,
            timeout=self._config.timeout_sec,
        )

    async def run_json(self, operation: Operation, **params: Any) -> Structured:
        """Run *operation* and return its parsed JSON envelope."""
        result = await self._run(operation, params, expect_json=True, max_buffer=None)
        assert isinstance(result, Structured)
        return result

    async def run_text(
        self, operation: Operation, *, max_buffer: int | None = None, **params: Any
    ) -> str:
        """Run *operation* and return its raw output."""
        result = await self._run(operation, params, expect_json=False, max_buffer=max_buffer)
        assert isinstance(result, str)
        return result

    async def run_in(
        self,
        operation: Operation,
        dialect: Dialect,
        *,
        max_buffer: int | None = None,
        **params: Any,
    ) -> str:
        """Run *operation* in exactly one dialect, without fallback."""
        return await self.invoke(self.command(operation, dialect, **params), max_buffer=max_buffer)

    async def query(
        self, soql: str, *, tooling: bool = False, target_org: str | None = None
    ) -> list[dict[str, Any]]:
        """Run a SOQL query and return its records."""
        parsed = await self.run_json(
            Operation.QUERY, query=soql, tooling=tooling, target_org=target_org
        )
        return extract_records(parsed)

    async def probe(self) -> bool:
        """Check whether either CLI executable can be run at all."""
        for dialect in (Dialect.MODERN, Dialect.LEGACY):
            try:
                await self.invoke(self.command(Operation.VERSION, dialect))
            except LogBridgeError as e:
                log.debug("tool_probe_failed", dialect=dialect.value, error=str(e))
                continue
            return True
        return False

    async def _run(
        self,
        operation: Operation,
        params: dict[str, Any],
        *,
        expect_json: bool,
        max_buffer: int | None,
    ) -> Structured | str:
        spec = commands.get(operation)
        strategies = [
            _DialectStrategy(self, operation, dialect, params, expect_json, max_buffer)
            for dialect in spec.dialects()
        ]
        try:
            _, value = await first_success(strategies)
        except StrategiesExhaustedError as e:
            raise await self.classify_failure(operation, e) from e
        return value

    async def classify_failure(
        self, operation: Operation, exhausted: StrategiesExhaustedError
    ) -> LogBridgeError:
        """Turn a failed dialect chain into the most specific error."""
        errors = [a.error for a in exhausted.attempts]
        if errors and all(isinstance(e, CommandFailedError) and e.tool_missing for e in errors):
            return ToolUnavailableError.not_installed(
                [self._config.executable, self._config.legacy_executable]
            )

        reasons = " ".join(
            e.output if isinstance(e, CommandFailedError) else str(e) for e in errors
        ).lower()
        if any(marker in reasons for marker in _ORG_CONTEXT_MARKERS):
            if not await self.probe():
                return ToolUnavailableError.not_installed(
                    [self._config.executable, self._config.legacy_executable]
                )
            return NoDefaultEnvironmentError.not_configured(exhausted.attempts[0].reason)

        log.warning(
            "dialects_exhausted",
            operation=operation.value,
            attempts=[name for name, _ in exhausted.summary()],
        )
        return DialectMismatchError.both_failed(operation.value, exhausted.summary())
