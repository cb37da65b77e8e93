"""Tests for test run models."""

import pytest
from pydantic import ValidationError

from logbridge.testrun.models import TestClassInfo, TestResult, TestRun

REPORT = {
    "summary": {
        "outcome": "Failed",
        "testRunId": "7071x00000ABC",
        "testStartTime": "2024-03-01T10:00:00.000+0000",
        "passing": 1,
        "failing": 1,
    },
    "tests": [
        {
            "ApexClass": {"Name": "AccountTest"},
            "MethodName": "testInsert",
            "Outcome": "Pass",
        },
        {
            "FullName": "AccountTest.testUpdate",
            "Outcome": "Fail",
            "Message": "System.AssertException: Assertion Failed",
            "StackTrace": "Class.AccountTest.testUpdate: line 12",
            "ApexLogId": "07L1",
        },
    ],
}


class TestTestRun:
    def test_from_result(self) -> None:
        run = TestRun.from_result("ignored", REPORT)

        assert run.run_id == "7071x00000ABC"
        assert run.status == "Failed"
        assert run.start_time == "2024-03-01T10:00:00.000+0000"
        assert run.is_terminal
        assert len(run.results) == 2

    def test_failures_and_explicit_log(self) -> None:
        run = TestRun.from_result("707", REPORT)

        assert [r.method_name for r in run.failures] == ["testUpdate"]
        assert run.explicit_log_id == "07L1"

    def test_queued_run_is_not_terminal(self) -> None:
        run = TestRun.from_result("707", {"summary": {"outcome": "Processing"}})

        assert run.run_id == "707"
        assert not run.is_terminal
        assert run.results == ()

    def test_passed_is_terminal(self) -> None:
        assert TestRun(run_id="707", status="Passed").is_terminal

    def test_missing_summary(self) -> None:
        run = TestRun.from_result("707", {"summary": None, "tests": "nope"})

        assert run.status == "Queued"
        assert run.start_time is None


class TestTestResult:
    def test_class_from_full_name(self) -> None:
        result = TestResult.from_record({"FullName": "MyTest.testOne", "Outcome": "Pass"})

        assert (result.class_name, result.method_name) == ("MyTest", "testOne")
        assert result.log_id is None


class TestTestClassInfo:
    def test_validates_cached_entry(self) -> None:
        info = TestClassInfo.model_validate({"name": "AccountTest", "id": "01p1"})

        assert info.methods == []
        assert info.model_dump()["name"] == "AccountTest"

    def test_null_methods_are_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TestClassInfo.model_validate({"name": "AccountTest", "methods": None})
