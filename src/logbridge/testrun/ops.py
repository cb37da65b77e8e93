"""Test operations - run tests, correlate logs, queries and trace flags."""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from logbridge.cache.store import load_models
from logbridge.cache.test_classes import TestClassStore
from logbridge.core.errors import MalformedResponseError
from logbridge.logs.models import LogEntity
from logbridge.logs.ops import LogOps
from logbridge.orgs.ops import OrgOps
from logbridge.testrun.correlator import LogCorrelator
from logbridge.testrun.models import TestClassInfo, TestRun
from logbridge.tool.gateway import CliGateway
from logbridge.tool.models import Operation
from logbridge.tool.response import extract_object, require_single_record

log = structlog.get_logger(__name__)

# `@isTest void name(` (annotation may carry arguments) or `testMethod void name(`
_TEST_METHOD = re.compile(
    r"(?:@istest(?:\s*\([^)]*\))?\s+"
    r"(?:(?:public|private|global|protected|static|override|virtual)\s+)*"
    r"|\btestmethod\s+)void\s+(\w+)\s*\(",
    re.IGNORECASE,
)


def extract_test_methods(body: str) -> list[str]:
    """Names of the test methods declared in an Apex class body, in order."""
    seen: dict[str, None] = {}
    for match in _TEST_METHOD.finditer(body):
        seen.setdefault(match.group(1), None)
    return list(seen)


def is_test_class(body: str) -> bool:
    lowered = body.lower()
    return "@istest" in lowered or "testmethod" in lowered


def _soql_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _record_values(values: Mapping[str, Any]) -> str:
    """Render ``field=value`` pairs the way the record commands expect them."""
    parts = []
    for key, value in values.items():
        text = str(value)
        parts.append(f"{key}='{text}'" if " " in text else f"{key}={text}")
    return " ".join(parts)


class TestOps:
    """Test, query and trace flag operations for the current default org."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        gateway: CliGateway,
        logs: LogOps,
        orgs: OrgOps,
        classes: TestClassStore,
        correlator: LogCorrelator | None = None,
    ) -> None:
        self._gateway = gateway
        self._logs = logs
        self._orgs = orgs
        self._classes = classes
        self._correlator = correlator or LogCorrelator()

    async def run_tests(self, class_name: str, method_name: str | None = None) -> TestRun:
        """Submit a test run for a class, or for one method of it."""
        alias = await self._orgs.current_alias()
        params: dict[str, Any] = (
            {"tests": f"{class_name}.{method_name}"} if method_name else {"class_names": class_name}
        )
        parsed = await self._gateway.run_json(Operation.RUN_TESTS, target_org=alias, **params)
        result = extract_object(parsed) or {}
        run_id = result.get("testRunId")
        if not run_id:
            raise MalformedResponseError.missing("test run id", "submission returned no id")
        log.info("test_run_submitted", run_id=run_id, class_name=class_name, method=method_name)
        return TestRun(run_id=str(run_id))

    async def get_test_run(self, run_id: str) -> TestRun:
        alias = await self._orgs.current_alias()
        parsed = await self._gateway.run_json(
            Operation.GET_TEST_RUN, run_id=run_id, target_org=alias
        )
        result = extract_object(parsed)
        if result is None:
            raise MalformedResponseError.missing("test run", "test run report had no result")
        return TestRun.from_result(run_id, result)

    async def wait_for_run(
        self, run_id: str, *, interval: float = 2.0, timeout: float | None = None
    ) -> TestRun:
        """Poll *run_id* until it reaches a terminal state.

        Raises:
            TimeoutError: *timeout* seconds passed first.
        """
        async with asyncio.timeout(timeout):
            while True:
                run = await self.get_test_run(run_id)
                if run.is_terminal:
                    return run
                log.debug("test_run_pending", run_id=run_id, status=run.status)
                await asyncio.sleep(interval)

    async def find_log_for_run(self, run_id: str) -> LogEntity | None:
        """The log produced by *run_id*, or None if no log qualifies."""
        run = await self.get_test_run(run_id)
        if run.explicit_log_id:
            # An explicit reference needs no listing; the cache only adds details
            candidates = await self._logs.cached_logs()
        else:
            candidates = await self._logs.list_logs(force_refresh=True)
        return self._correlator.correlate(run, candidates)

    async def get_log_for_run(self, run_id: str) -> tuple[LogEntity, str] | None:
        entry = await self.find_log_for_run(run_id)
        if entry is None:
            return None
        return entry, await self._logs.get_log_body(entry.id)

    async def list_test_classes(self, *, force_refresh: bool = False) -> list[TestClassInfo]:
        """Test classes of the default org with their test methods."""
        alias = await self._orgs.current_alias()
        if not force_refresh:
            stored = await asyncio.to_thread(self._classes.get, alias)
            cached = load_models(TestClassInfo, stored, alias=alias)
            if cached:
                return cached

        records = await self._gateway.query(
            "SELECT Id, Name, Body FROM ApexClass ORDER BY Name", target_org=alias
        )
        classes = [
            TestClassInfo(
                name=str(r.get("Name", "")),
                id=str(r.get("Id", "")),
                methods=extract_test_methods(str(r.get("Body") or "")),
                file_name=f"{r.get('Name', '')}.cls",
            )
            for r in records
            if is_test_class(str(r.get("Body") or ""))
        ]
        await asyncio.to_thread(self._classes.put, alias, [c.model_dump() for c in classes])
        log.info("test_classes_refreshed", alias=alias, classes=len(classes))
        return classes

    async def get_class_body(self, name: str) -> str:
        alias = await self._orgs.current_alias()
        records = await self._gateway.query(
            f"SELECT Id, Name, Body FROM ApexClass WHERE Name = {_soql_literal(name)} LIMIT 1",
            target_org=alias,
        )
        record = require_single_record(records, f"class {name}")
        return str(record.get("Body") or "")

    async def class_methods(self, name: str) -> list[str]:
        """Test methods of one class, recorded in the test class index."""
        methods = extract_test_methods(await self.get_class_body(name))
        alias = await self._orgs.current_alias()
        await asyncio.to_thread(self._classes.save_methods, alias, name, methods)
        return methods

    async def execute_query(self, soql: str, *, tooling: bool = False) -> list[dict[str, Any]]:
        alias = await self._orgs.current_alias()
        return await self._gateway.query(soql, tooling=tooling, target_org=alias)

    async def execute_anonymous(self, code: str) -> dict[str, Any]:
        """Execute anonymous Apex and return the CLI's result mapping."""
        alias = await self._orgs.current_alias()
        fd, name = tempfile.mkstemp(
            prefix=f"{self._gateway.config.temp_prefix}_anon_", suffix=".apex"
        )
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(code)
            parsed = await self._gateway.run_json(
                Operation.RUN_ANONYMOUS, file=str(path), target_org=alias
            )
        finally:
            path.unlink(missing_ok=True)
        return extract_object(parsed) or {}

    # Trace flags

    async def get_trace_flag(self, user_id: str) -> dict[str, Any] | None:
        records = await self.execute_query(
            "SELECT Id, DebugLevelId, ExpirationDate FROM TraceFlag "
            f"WHERE TracedEntityId = {_soql_literal(user_id)} AND LogType = 'DEVELOPER_LOG'",
            tooling=True,
        )
        return records[0] if records else None

    async def create_debug_level(self, values: Mapping[str, Any]) -> str:
        return await self._create("DebugLevel", values)

    async def update_debug_level(self, debug_level_id: str, values: Mapping[str, Any]) -> None:
        alias = await self._orgs.current_alias()
        await self._gateway.run_json(
            Operation.UPDATE_RECORD,
            sobject="DebugLevel",
            record_id=debug_level_id,
            values=_record_values(values),
            tooling=True,
            target_org=alias,
        )

    async def create_trace_flag(self, values: Mapping[str, Any]) -> str:
        return await self._create("TraceFlag", values)

    async def delete_trace_flag(self, trace_flag_id: str) -> None:
        alias = await self._orgs.current_alias()
        await self._gateway.run_json(
            Operation.DELETE_RECORD,
            sobject="TraceFlag",
            record_id=trace_flag_id,
            tooling=True,
            target_org=alias,
        )

    async def _create(self, sobject: str, values: Mapping[str, Any]) -> str:
        alias = await self._orgs.current_alias()
        parsed = await self._gateway.run_json(
            Operation.CREATE_RECORD,
            sobject=sobject,
            values=_record_values(values),
            tooling=True,
            target_org=alias,
        )
        record_id = (extract_object(parsed) or {}).get("id")
        if not record_id:
            raise MalformedResponseError.missing(f"{sobject} id", "record create returned no id")
        log.info("record_created", sobject=sobject, record_id=record_id)
        return str(record_id)
