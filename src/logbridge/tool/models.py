"""Tool models - operations, dialects and process results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Dialect(Enum):
    """Argument dialect of the external CLI."""

    MODERN = "modern"
    LEGACY = "legacy"


class Operation(Enum):
    """Logical operation the external CLI can perform."""

    VERSION = "version"
    LIST_LOGS = "list_logs"
    GET_LOG = "get_log"
    QUERY = "query"
    CREATE_RECORD = "create_record"
    UPDATE_RECORD = "update_record"
    DELETE_RECORD = "delete_record"
    BULK_DELETE = "bulk_delete"
    RUN_TESTS = "run_tests"
    GET_TEST_RUN = "get_test_run"
    LIST_ORGS = "list_orgs"
    DISPLAY_ORG = "display_org"
    DISPLAY_USER = "display_user"
    SET_DEFAULT_ORG = "set_default_org"
    GET_CONFIG = "get_config"
    RUN_ANONYMOUS = "run_anonymous"


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Captured outcome of one child process."""

    command: str
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def has_output(self) -> bool:
        return bool(self.stdout.strip())
