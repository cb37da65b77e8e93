"""Core module exports."""

from logbridge.core.errors import (
    CommandFailedError,
    CommandTimeoutError,
    ConfigError,
    DialectMismatchError,
    ErrorCode,
    InternalError,
    LogBridgeError,
    LogFetchError,
    MalformedResponseError,
    NoDefaultEnvironmentError,
    OutputLimitError,
    ToolUnavailableError,
)
from logbridge.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from logbridge.core.memo import TtlMemo

__all__ = [
    # Errors
    "CommandFailedError",
    "CommandTimeoutError",
    "ConfigError",
    "DialectMismatchError",
    "ErrorCode",
    "InternalError",
    "LogBridgeError",
    "LogFetchError",
    "MalformedResponseError",
    "NoDefaultEnvironmentError",
    "OutputLimitError",
    "ToolUnavailableError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Memo
    "TtlMemo",
]
