"""LogBridge error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: External tool / remote org
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Tool (3xxx)
    TOOL_UNAVAILABLE = 3001
    NO_DEFAULT_ENVIRONMENT = 3002
    DIALECT_MISMATCH = 3003
    MALFORMED_RESPONSE = 3004
    LOG_FETCH_FAILED = 3005
    COMMAND_FAILED = 3010
    COMMAND_TIMEOUT = 3011
    OUTPUT_LIMIT_EXCEEDED = 3012

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True)
class LogBridgeError(Exception):
    """Base error with structured context for callers."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TOOL_UNAVAILABLE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(LogBridgeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CommandFailedError(LogBridgeError):
    """A single external command failed."""

    @classmethod
    def from_process(
        cls,
        command: str,
        returncode: int,
        stdout: str,
        stderr: str,
        *,
        reason: str | None = None,
    ) -> "CommandFailedError":
        detail = reason or (stderr.strip() or stdout.strip() or "no output")
        return cls(
            code=ErrorCode.COMMAND_FAILED,
            message=f"Command exited with status {returncode}: {_first_line(detail)}",
            details={
                "command": command,
                "returncode": returncode,
                "stdout": stdout,
                "stderr": stderr,
                "tool_missing": _looks_like_missing_tool(returncode, stderr),
            },
        )

    @classmethod
    def not_launched(cls, command: str, reason: str) -> "CommandFailedError":
        return cls(
            code=ErrorCode.COMMAND_FAILED,
            message=f"Command could not be started: {reason}",
            details={
                "command": command,
                "returncode": None,
                "stdout": "",
                "stderr": reason,
                "tool_missing": True,
            },
        )

    @property
    def output(self) -> str:
        """Combined captured output, stdout first."""
        return "\n".join(
            part for part in (self.details.get("stdout"), self.details.get("stderr")) if part
        )

    @property
    def tool_missing(self) -> bool:
        return bool(self.details.get("tool_missing"))


class CommandTimeoutError(LogBridgeError):
    """External command exceeded its timeout and was killed."""

    @classmethod
    def after(cls, command: str, timeout: float) -> "CommandTimeoutError":
        return cls(
            code=ErrorCode.COMMAND_TIMEOUT,
            message=f"Command timed out after {timeout:g}s",
            retryable=True,
            details={"command": command, "timeout": timeout},
        )


class OutputLimitError(LogBridgeError):
    """External command produced more output than the capture ceiling."""

    @classmethod
    def exceeded(cls, command: str, limit: int) -> "OutputLimitError":
        return cls(
            code=ErrorCode.OUTPUT_LIMIT_EXCEEDED,
            message=f"Command output exceeded {limit} bytes and was stopped",
            details={"command": command, "limit": limit},
        )


class ToolUnavailableError(LogBridgeError):
    """The external command-line tool cannot be executed at all."""

    @classmethod
    def not_installed(cls, executables: list[str]) -> "ToolUnavailableError":
        names = " or ".join(f"'{e}'" for e in executables)
        return cls(
            code=ErrorCode.TOOL_UNAVAILABLE,
            message=(
                f"The Salesforce CLI could not be found ({names} is not on PATH). "
                "Install it with 'npm install --global @salesforce/cli' and try again."
            ),
            details={"executables": executables},
        )


class NoDefaultEnvironmentError(LogBridgeError):
    """The tool runs, but no default org is configured."""

    @classmethod
    def not_configured(cls, reason: str = "") -> "NoDefaultEnvironmentError":
        return cls(
            code=ErrorCode.NO_DEFAULT_ENVIRONMENT,
            message=(
                "No default Salesforce org is set. Select an org, or set one with "
                "'sf config set target-org <alias>'."
            ),
            details={"reason": reason} if reason else {},
        )


class DialectMismatchError(LogBridgeError):
    """Both the modern and the legacy command form failed."""

    @classmethod
    def both_failed(cls, operation: str, attempts: list[tuple[str, str]]) -> "DialectMismatchError":
        summary = "; ".join(f"{name} failed: {_first_line(reason)}" for name, reason in attempts)
        return cls(
            code=ErrorCode.DIALECT_MISMATCH,
            message=f"Operation '{operation}' failed in every command form. {summary}",
            details={"operation": operation, "attempts": [list(a) for a in attempts]},
        )

    @property
    def attempts(self) -> list[tuple[str, str]]:
        return [(name, reason) for name, reason in self.details.get("attempts", [])]


class MalformedResponseError(LogBridgeError):
    """Tool output could not be normalized into the required shape."""

    @classmethod
    def missing(cls, what: str, reason: str = "no matching record") -> "MalformedResponseError":
        return cls(
            code=ErrorCode.MALFORMED_RESPONSE,
            message=f"Unexpected response while reading {what}: {reason}",
            details={"what": what, "reason": reason},
        )


class LogFetchError(LogBridgeError):
    """Every strategy for fetching a log body failed."""

    @classmethod
    def exhausted(cls, log_id: str, attempts: list[tuple[str, str]]) -> "LogFetchError":
        summary = "; ".join(f"{name}: {_first_line(reason)}" for name, reason in attempts)
        return cls(
            code=ErrorCode.LOG_FETCH_FAILED,
            message=(
                f"Failed to fetch log {log_id}. The log may be too large to download; "
                f"try the Salesforce CLI directly. Attempts: {summary}"
            ),
            details={"log_id": log_id, "attempts": [list(a) for a in attempts]},
        )


class InternalError(LogBridgeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )


_MISSING_TOOL_MARKERS = ("command not found", "is not recognized")


def _looks_like_missing_tool(returncode: int | None, stderr: str) -> bool:
    if returncode == 127:
        return True
    lowered = stderr.lower()
    return returncode != 0 and any(m in lowered for m in _MISSING_TOOL_MARKERS)


def _first_line(text: str) -> str:
    stripped = text.strip()
    return stripped.splitlines()[0] if stripped else ""
