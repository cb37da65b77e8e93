"""Test run models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from logbridge.config.constants import TERMINAL_TEST_RUN_STATES


@dataclass(frozen=True, slots=True)
class TestResult:
    """Outcome of one test method."""

    __test__ = False  # not a pytest test class

    class_name: str
    method_name: str
    outcome: str
    message: str = ""
    stack_trace: str = ""
    log_id: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TestResult:
        apex_class = record.get("ApexClass")
        class_name = apex_class.get("Name", "") if isinstance(apex_class, dict) else ""
        method_name = str(record.get("MethodName") or "")
        full_name = str(record.get("FullName") or "")
        if not class_name and "." in full_name:
            class_name, _, method_name = full_name.partition(".")
        return cls(
            class_name=str(class_name),
            method_name=method_name,
            outcome=str(record.get("Outcome") or ""),
            message=str(record.get("Message") or ""),
            stack_trace=str(record.get("StackTrace") or ""),
            log_id=record.get("ApexLogId") or None,
        )


@dataclass(frozen=True, slots=True)
class TestRun:
    """An asynchronous test run; immutable once terminal."""

    __test__ = False  # not a pytest test class

    run_id: str
    status: str = "Queued"
    start_time: str | None = None  # ISO-8601
    summary: dict[str, Any] = field(default_factory=dict)
    results: tuple[TestResult, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.status.lower() in TERMINAL_TEST_RUN_STATES

    @property
    def explicit_log_id(self) -> str | None:
        """First log id a test result references directly."""
        return next((r.log_id for r in self.results if r.log_id), None)

    @property
    def failures(self) -> list[TestResult]:
        return [r for r in self.results if r.outcome.lower() not in ("pass", "passed")]

    @classmethod
    def from_result(cls, run_id: str, result: dict[str, Any]) -> TestRun:
        """Build from the ``result`` of a test run report."""
        summary = result.get("summary")
        summary = summary if isinstance(summary, dict) else {}
        tests = result.get("tests")
        tests = tests if isinstance(tests, list) else []
        return cls(
            run_id=str(summary.get("testRunId") or run_id),
            status=str(summary.get("outcome") or "Queued"),
            start_time=summary.get("testStartTime") or None,
            summary=summary,
            results=tuple(TestResult.from_record(t) for t in tests if isinstance(t, dict)),
        )


class TestClassInfo(BaseModel):
    """A test class known in an org, as listed in the test class index."""

    __test__ = False  # not a pytest test class

    name: str
    id: str = ""
    methods: list[str] = Field(default_factory=list)
    file_name: str = ""
