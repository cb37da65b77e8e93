"""Tool module - run the external CLI across dialects and normalize its output."""

# Import definitions to register all commands
from logbridge.tool import definitions as _definitions  # noqa: F401
from logbridge.tool.dialects import CommandSpec, Opt, build_command, commands
from logbridge.tool.fallback import (
    FailedAttempt,
    FunctionStrategy,
    StrategiesExhaustedError,
    Strategy,
    first_success,
)
from logbridge.tool.gateway import CliGateway
from logbridge.tool.models import Dialect, Operation, ProcessResult
from logbridge.tool.process import classify, invoke, run_process
from logbridge.tool.response import (
    NotStructured,
    Parsed,
    Structured,
    extract_object,
    extract_records,
    extract_text,
    parse_envelope,
    require_single_record,
)

__all__ = [
    "CliGateway",
    "CommandSpec",
    "Dialect",
    "FailedAttempt",
    "FunctionStrategy",
    "NotStructured",
    "Operation",
    "Opt",
    "Parsed",
    "ProcessResult",
    "StrategiesExhaustedError",
    "Strategy",
    "Structured",
    "build_command",
    "classify",
    "commands",
    "extract_object",
    "extract_records",
    "extract_text",
    "first_success",
    "invoke",
    "parse_envelope",
    "require_single_record",
    "run_process",
]
