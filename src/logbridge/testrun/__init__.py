"""Testrun module - asynchronous test runs and their logs."""

from logbridge.testrun.correlator import LogCorrelator, parse_timestamp
from logbridge.testrun.models import TestClassInfo, TestResult, TestRun
from logbridge.testrun.ops import TestOps, extract_test_methods

__all__ = [
    "LogCorrelator",
    "TestClassInfo",
    "TestOps",
    "TestResult",
    "TestRun",
    "extract_test_methods",
    "parse_timestamp",
]
