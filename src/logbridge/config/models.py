"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (LOGBRIDGE__SECTION__KEY)
3. Project YAML (.logbridge/config.yaml)
4. Global YAML (~/.config/logbridge/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    LOGBRIDGE__<SECTION>__<KEY>=<VALUE>

Examples:
    LOGBRIDGE__LOGGING__LEVEL=DEBUG
    LOGBRIDGE__TOOL__TIMEOUT_SEC=120
    LOGBRIDGE__LOGS__LIST_LIMIT=100
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from logbridge.config.constants import DEFAULT_MAX_BUFFER_BYTES, LARGE_LOG_BUFFER_BYTES

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        LOGBRIDGE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG logs every command line that is run.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolConfig(BaseModel):
    """External command-line tool configuration.

    Env vars:
        LOGBRIDGE__TOOL__EXECUTABLE: Modern CLI executable (default: sf)
        LOGBRIDGE__TOOL__LEGACY_EXECUTABLE: Legacy CLI executable (default: sfdx)
        LOGBRIDGE__TOOL__MAX_BUFFER_BYTES: Capture ceiling per command
        LOGBRIDGE__TOOL__TIMEOUT_SEC: Optional per-command timeout
    """

    executable: str = Field(default="sf", description="Modern CLI executable name or path.")
    legacy_executable: str = Field(
        default="sfdx",
        description="Legacy CLI executable used when the modern command form fails.",
    )
    max_buffer_bytes: int = Field(
        default=DEFAULT_MAX_BUFFER_BYTES,
        description="Captured output ceiling for ordinary commands. "
        "RISK: Too high lets a runaway process exhaust memory.",
    )
    large_buffer_bytes: int = Field(
        default=LARGE_LOG_BUFFER_BYTES,
        description="Captured output ceiling when a log body is read straight from stdout.",
    )
    timeout_sec: float | None = Field(
        default=None,
        description="Kill a command after this many seconds. None waits indefinitely.",
    )
    temp_prefix: str = Field(
        default="logbridge",
        description="Prefix of temporary files the tool writes log bodies into.",
    )

    @field_validator("max_buffer_bytes", "large_buffer_bytes")
    @classmethod
    def validate_buffer(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Buffer ceiling must be positive, got {v}")
        return v


class CacheConfig(BaseModel):
    """Cache location configuration.

    Env vars:
        LOGBRIDGE__CACHE__DIRECTORY: Cache directory relative to the project root
    """

    directory: str = Field(
        default=".logbridge/cache",
        description="Cache directory. Relative paths resolve against the project root.",
    )


class LogsConfig(BaseModel):
    """Debug log listing and download configuration.

    Env vars:
        LOGBRIDGE__LOGS__LIST_LIMIT: Max logs returned by a query listing
        LOGBRIDGE__LOGS__DELETE_BATCH_SIZE: Ids per bulk delete command
        LOGBRIDGE__LOGS__DIRECTORY: Where downloaded logs are written
    """

    list_limit: int = Field(
        default=50,
        description="Max logs returned when logs are listed through a query.",
    )
    delete_batch_size: int = Field(
        default=10,
        description="Log ids per delete command. Keeps command lines short.",
    )
    directory: str = Field(
        default=".logbridge/logs",
        description="Downloaded log directory. Relative paths resolve against the project root.",
    )

    @field_validator("list_limit", "delete_batch_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class OrgsConfig(BaseModel):
    """Org resolution configuration.

    Env vars:
        LOGBRIDGE__ORGS__ALIAS_TTL_SEC: How long the resolved default org is reused
    """

    alias_ttl_sec: float = Field(
        default=300.0,
        description="Reuse the resolved default org alias and user id for this long.",
    )


class LogBridgeConfig(BaseModel):
    """Root configuration for LogBridge.

    All settings can be configured via:
    1. Environment variables: LOGBRIDGE__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logs: LogsConfig = Field(default_factory=LogsConfig)
    orgs: OrgsConfig = Field(default_factory=OrgsConfig)
