"""Tests for the lbr command groups, run against a mocked engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from logbridge.cli.main import cli
from logbridge.core.errors import NoDefaultEnvironmentError
from logbridge.logs.models import LogEntity
from logbridge.orgs.models import OrgCategory, OrgContext, OrgGroups
from logbridge.orgs.refresh import RefreshOutcome
from logbridge.testrun.models import TestResult, TestRun

runner = CliRunner()


@pytest.fixture
def engine() -> MagicMock:
    engine = MagicMock()
    engine.logs.list_logs = AsyncMock(return_value=[])
    engine.logs.get_log_body = AsyncMock(return_value="LOG BODY\n")
    engine.logs.download_log = AsyncMock()
    engine.logs.delete_logs = AsyncMock(return_value=0)
    engine.logs.delete_all_logs = AsyncMock(return_value=0)
    engine.orgs.list_orgs = AsyncMock(return_value=OrgGroups())
    engine.orgs.refresh_orgs = AsyncMock()
    engine.orgs.set_default_org = AsyncMock(return_value={})
    engine.orgs.current_alias = AsyncMock(return_value="dev")
    engine.tests.run_tests = AsyncMock()
    engine.tests.wait_for_run = AsyncMock()
    engine.tests.get_test_run = AsyncMock()
    engine.tests.find_log_for_run = AsyncMock(return_value=None)
    engine.tests.get_log_for_run = AsyncMock(return_value=None)
    return engine


def invoke(engine: MagicMock, *args: str) -> Any:
    return runner.invoke(cli, list(args), obj={"engine": engine})


class TestLogsCommands:
    """lbr logs ..."""

    def test_list_json(self, engine: MagicMock) -> None:
        engine.logs.list_logs.return_value = [LogEntity(id="07L1", operation="Api")]

        result = invoke(engine, "logs", "list", "--json", "--refresh")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)[0]["id"] == "07L1"
        engine.logs.list_logs.assert_awaited_once_with(force_refresh=True)

    def test_list_table(self, engine: MagicMock) -> None:
        engine.logs.list_logs.return_value = [LogEntity(id="07L1", operation="Api")]

        result = invoke(engine, "logs", "list")

        assert result.exit_code == 0
        assert "07L1" in result.output

    def test_list_empty(self, engine: MagicMock) -> None:
        result = invoke(engine, "logs", "list")

        assert "No debug logs found" in result.output

    def test_get_prints_body(self, engine: MagicMock) -> None:
        result = invoke(engine, "logs", "get", "07L1")

        assert result.output == "LOG BODY\n"

    def test_download_each_id(self, engine: MagicMock, tmp_path: Path) -> None:
        engine.logs.download_log.side_effect = [tmp_path / "a.log", tmp_path / "b.log"]

        result = invoke(engine, "logs", "download", "07L1", "07L2")

        assert result.exit_code == 0
        assert engine.logs.download_log.await_count == 2

    def test_delete_requires_ids_or_all(self, engine: MagicMock) -> None:
        result = invoke(engine, "logs", "delete")

        assert result.exit_code == 2
        assert "Pass log ids or --all" in result.output

    def test_delete_with_yes(self, engine: MagicMock) -> None:
        engine.logs.delete_logs.return_value = 2

        result = invoke(engine, "logs", "delete", "07L1", "07L2", "--yes")

        assert result.exit_code == 0
        assert "Deleted 2 log(s)" in result.output
        engine.logs.delete_logs.assert_awaited_once_with(["07L1", "07L2"])

    def test_delete_all_cancelled(self, engine: MagicMock) -> None:
        with patch("logbridge.cli.logs.questionary.confirm") as confirm:
            confirm.return_value.ask.return_value = False
            result = invoke(engine, "logs", "delete", "--all")

        assert result.exit_code == 0
        engine.logs.delete_all_logs.assert_not_awaited()

    def test_delete_all_confirmed(self, engine: MagicMock) -> None:
        engine.logs.delete_all_logs.return_value = 5

        with patch("logbridge.cli.logs.questionary.confirm") as confirm:
            confirm.return_value.ask.return_value = True
            result = invoke(engine, "logs", "delete", "--all")

        assert "Deleted 5 log(s)" in result.output

    def test_classified_error_becomes_cli_error(self, engine: MagicMock) -> None:
        engine.logs.list_logs.side_effect = NoDefaultEnvironmentError.not_configured()

        result = invoke(engine, "logs", "list")

        assert result.exit_code == 1
        assert "No default Salesforce org is set" in result.output


class TestOrgsCommands:
    """lbr orgs ..."""

    def _groups(self) -> OrgGroups:
        groups = OrgGroups()
        groups.sandbox.append(
            OrgContext(username="qa@x.com", alias="qa", category=OrgCategory.SANDBOX)
        )
        return groups

    def test_list_json(self, engine: MagicMock) -> None:
        engine.orgs.list_orgs.return_value = self._groups()

        result = invoke(engine, "orgs", "list", "--json")

        assert json.loads(result.output)["sandbox"][0]["alias"] == "qa"

    def test_list_refresh_uses_guarded_refresh(self, engine: MagicMock) -> None:
        engine.orgs.refresh_orgs.return_value = RefreshOutcome(started=True, value=self._groups())

        result = invoke(engine, "orgs", "list", "--refresh")

        assert result.exit_code == 0
        assert "qa" in result.output
        engine.orgs.list_orgs.assert_not_awaited()

    def test_list_empty(self, engine: MagicMock) -> None:
        result = invoke(engine, "orgs", "list")

        assert "No connected orgs found" in result.output

    def test_use(self, engine: MagicMock) -> None:
        result = invoke(engine, "orgs", "use", "qa")

        assert result.exit_code == 0
        engine.orgs.set_default_org.assert_awaited_once_with("qa")

    def test_current(self, engine: MagicMock) -> None:
        assert invoke(engine, "orgs", "current").output == "dev\n"


class TestTestsCommands:
    """lbr tests ..."""

    def test_run_and_wait(self, engine: MagicMock) -> None:
        engine.tests.run_tests.return_value = TestRun(run_id="707A")
        engine.tests.wait_for_run.return_value = TestRun(
            run_id="707A",
            status="Failed",
            results=(TestResult("AccountTest", "testInsert", "Fail", message="boom"),),
        )

        result = invoke(engine, "tests", "run", "AccountTest", "--json", "--interval", "0.5")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["status"] == "Failed"
        assert data["terminal"] is True
        assert data["results"][0]["message"] == "boom"
        engine.tests.wait_for_run.assert_awaited_once_with("707A", interval=0.5)

    def test_run_no_wait(self, engine: MagicMock) -> None:
        engine.tests.run_tests.return_value = TestRun(run_id="707A")

        result = invoke(
            engine, "tests", "run", "AccountTest", "--method", "testInsert", "--no-wait"
        )

        assert "707A" in result.output
        engine.tests.run_tests.assert_awaited_once_with("AccountTest", "testInsert")
        engine.tests.wait_for_run.assert_not_awaited()

    def test_status(self, engine: MagicMock) -> None:
        engine.tests.get_test_run.return_value = TestRun(run_id="707A", status="Processing")

        result = invoke(engine, "tests", "status", "707A", "--json")

        assert json.loads(result.output)["terminal"] is False

    def test_log_prints_body(self, engine: MagicMock) -> None:
        engine.tests.get_log_for_run.return_value = (LogEntity(id="07L1"), "BODY")

        assert invoke(engine, "tests", "log", "707A").output == "BODY"

    def test_log_id_only(self, engine: MagicMock) -> None:
        engine.tests.find_log_for_run.return_value = LogEntity(id="07L1")

        assert invoke(engine, "tests", "log", "707A", "--id-only").output == "07L1\n"

    def test_log_not_found(self, engine: MagicMock) -> None:
        result = invoke(engine, "tests", "log", "707A")

        assert result.exit_code == 1
        assert "No log found for test run 707A" in result.output


class TestCacheCommands:
    def test_clear_alias_without_prompt(self, engine: MagicMock) -> None:
        result = invoke(engine, "cache", "clear", "--alias", "dev")

        assert result.exit_code == 0
        engine.clear_cache.assert_called_once_with("dev")

    def test_clear_all_prompts(self, engine: MagicMock) -> None:
        with patch("logbridge.cli.cache.questionary.confirm") as confirm:
            confirm.return_value.ask.return_value = False
            invoke(engine, "cache", "clear")

        engine.clear_cache.assert_not_called()

    def test_clear_all_with_yes(self, engine: MagicMock) -> None:
        invoke(engine, "cache", "clear", "--yes")

        engine.clear_cache.assert_called_once_with(None)


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output
