"""Tests for LogOps with a mocked gateway, fetcher and org resolver."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from logbridge.cache.store import OrgCacheStore
from logbridge.config.models import LogsConfig, ToolConfig
from logbridge.core.errors import (
    DialectMismatchError,
    LogFetchError,
    NoDefaultEnvironmentError,
)
from logbridge.logs.models import LogEntity
from logbridge.logs.ops import LogOps
from logbridge.tool.models import Operation
from logbridge.tool.response import Structured


def _api_record(log_id: str, start: str = "2024-03-01T10:00:00.000+0000") -> dict[str, Any]:
    return {
        "Id": log_id,
        "LogUser": {"Name": "Ada"},
        "Operation": "ApexTestHandler",
        "Status": "Success",
        "LogLength": 10,
        "StartTime": start,
    }


def _mismatch() -> DialectMismatchError:
    return DialectMismatchError.both_failed("x", [("modern", "boom"), ("legacy", "boom")])


@pytest.fixture
def gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.config = ToolConfig()
    gateway.run_json = AsyncMock()
    gateway.query = AsyncMock(return_value=[])
    return gateway


@pytest.fixture
def fetcher() -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value="REMOTE BODY")
    fetcher.download = AsyncMock()
    return fetcher


@pytest.fixture
def orgs() -> MagicMock:
    orgs = MagicMock()
    orgs.current_alias = AsyncMock(return_value="dev")
    return orgs


@pytest.fixture
def store(tmp_path: Path) -> OrgCacheStore:
    return OrgCacheStore(tmp_path / "cache", clock=lambda: 42)


@pytest.fixture
def ops(
    gateway: MagicMock, fetcher: MagicMock, store: OrgCacheStore, orgs: MagicMock, tmp_path: Path
) -> LogOps:
    return LogOps(
        gateway,
        fetcher,
        store,
        orgs,
        LogsConfig(delete_batch_size=2, list_limit=25),
        logs_dir=tmp_path / "logs",
    )


class TestListLogs:
    """Listing with cache and query fallback."""

    @pytest.mark.asyncio
    async def test_live_listing_is_cached(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        gateway.run_json.return_value = Structured(
            {"status": 0, "result": [_api_record("07L1"), _api_record("07L2")]}
        )

        entries = await ops.list_logs()

        assert [e.id for e in entries] == ["07L1", "07L2"]
        gateway.run_json.assert_awaited_once_with(Operation.LIST_LOGS, target_org="dev")
        record = store.get("dev")
        assert [d["id"] for d in record.logs] == ["07L1", "07L2"]
        assert record.last_fetch == 42

    @pytest.mark.asyncio
    async def test_cache_hit_skips_the_tool(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        store.save_logs("dev", [LogEntity(id="07L9").model_dump()])
        store.mark_downloaded("dev", "07L9", Path("/tmp/07L9.log"))

        entries = await ops.list_logs()

        assert [e.id for e in entries] == ["07L9"]
        assert entries[0].downloaded is True
        assert entries[0].local_path == "/tmp/07L9.log"
        gateway.run_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        store.save_logs("dev", [LogEntity(id="07L9").model_dump()])
        gateway.run_json.return_value = Structured({"result": [_api_record("07L1")]})

        entries = await ops.list_logs(force_refresh=True)

        assert [e.id for e in entries] == ["07L1"]

    @pytest.mark.asyncio
    async def test_invalid_cached_entry_forces_live_listing(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        # Given a cached listing whose entry has a mistyped length
        store.save_logs("dev", [{"id": "07L9", "log_length": "big"}])
        gateway.run_json.return_value = Structured({"result": [_api_record("07L1")]})

        # When listing
        entries = await ops.list_logs()

        # Then the org is asked again and the cache is rewritten
        assert [e.id for e in entries] == ["07L1"]
        gateway.run_json.assert_awaited_once()
        assert [d["id"] for d in store.get("dev").logs] == ["07L1"]

    @pytest.mark.asyncio
    async def test_cached_logs_never_calls_the_tool(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        store.save_logs("dev", [LogEntity(id="07L9", operation="Api").model_dump()])
        store.mark_downloaded("dev", "07L9", Path("/tmp/07L9.log"))

        entries = await ops.cached_logs()

        assert [(e.id, e.operation, e.downloaded) for e in entries] == [("07L9", "Api", True)]
        gateway.run_json.assert_not_awaited()
        gateway.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cached_logs_empty_without_listing(
        self, ops: LogOps, gateway: MagicMock
    ) -> None:
        assert await ops.cached_logs() == []
        gateway.run_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_failure_falls_back_to_query(
        self, ops: LogOps, gateway: MagicMock
    ) -> None:
        gateway.run_json.side_effect = _mismatch()
        gateway.query.return_value = [_api_record("07L3")]

        entries = await ops.list_logs()

        assert [e.id for e in entries] == ["07L3"]
        soql = gateway.query.await_args.args[0]
        assert soql.startswith("SELECT Id, LogUser.Name,")
        assert soql.endswith("FROM ApexLog ORDER BY StartTime DESC LIMIT 25")
        assert gateway.query.await_args.kwargs == {"tooling": True, "target_org": "dev"}

    @pytest.mark.asyncio
    async def test_missing_default_org_is_not_masked(
        self, ops: LogOps, gateway: MagicMock
    ) -> None:
        gateway.run_json.side_effect = NoDefaultEnvironmentError.not_configured()

        with pytest.raises(NoDefaultEnvironmentError):
            await ops.list_logs()

        gateway.query.assert_not_awaited()


class TestLogBodies:
    @pytest.mark.asyncio
    async def test_downloaded_copy_is_preferred(
        self, ops: LogOps, fetcher: MagicMock, store: OrgCacheStore, tmp_path: Path
    ) -> None:
        local = tmp_path / "07L1.log"
        local.write_text("LOCAL BODY")
        store.mark_downloaded("dev", "07L1", local)

        assert await ops.get_log_body("07L1") == "LOCAL BODY"
        fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_local_copy_fetches_remote(
        self, ops: LogOps, fetcher: MagicMock, store: OrgCacheStore, tmp_path: Path
    ) -> None:
        store.mark_downloaded("dev", "07L1", tmp_path / "gone.log")

        assert await ops.get_log_body("07L1") == "REMOTE BODY"
        fetcher.fetch.assert_awaited_once_with("07L1", "dev")

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, ops: LogOps, fetcher: MagicMock) -> None:
        fetcher.fetch.side_effect = LogFetchError.exhausted("07L1", [])

        with pytest.raises(LogFetchError):
            await ops.get_log_body("07L1")

    @pytest.mark.asyncio
    async def test_download_marks_state(
        self, ops: LogOps, fetcher: MagicMock, store: OrgCacheStore, tmp_path: Path
    ) -> None:
        store.save_logs("dev", [LogEntity(id="07L1", operation="Api").model_dump()])
        written = tmp_path / "logs" / "07L1.log"
        fetcher.download.return_value = written

        path = await ops.download_log("07L1")

        assert path == written
        entry, target_dir, alias = fetcher.download.await_args.args
        assert entry.operation == "Api"
        assert target_dir == ops.logs_dir
        assert alias == "dev"
        assert store.get("dev").log_paths == {"07L1": str(written)}


class TestDeleteLogs:
    """Batched deletion."""

    @pytest.mark.asyncio
    async def test_batches_use_bulk_delete(
        self, ops: LogOps, gateway: MagicMock, store: OrgCacheStore
    ) -> None:
        csv_contents: list[str] = []

        async def run_json(operation: Operation, **params: Any) -> Structured:
            assert operation is Operation.BULK_DELETE
            csv_contents.append(Path(params["file"]).read_text())
            return Structured({"status": 0})

        gateway.run_json.side_effect = run_json
        store.save_logs("dev", [{"id": i} for i in ("a", "b", "c", "keep")])

        deleted = await ops.delete_logs(["a", "b", "c"])

        assert deleted == 3
        assert csv_contents == ["Id\na\nb\n", "Id\nc\n"]
        assert [d["id"] for d in store.get("dev").logs] == ["keep"]

    @pytest.mark.asyncio
    async def test_csv_file_is_removed(self, ops: LogOps, gateway: MagicMock) -> None:
        paths: list[Path] = []

        async def run_json(operation: Operation, **params: Any) -> Structured:
            paths.append(Path(params["file"]))
            return Structured({"status": 0})

        gateway.run_json.side_effect = run_json

        await ops.delete_logs(["a"])

        assert paths and not paths[0].exists()

    @pytest.mark.asyncio
    async def test_failed_bulk_falls_back_to_single_deletes(
        self, ops: LogOps, gateway: MagicMock
    ) -> None:
        calls: list[tuple[Operation, str | None]] = []

        async def run_json(operation: Operation, **params: Any) -> Structured:
            calls.append((operation, params.get("record_id")))
            if operation is Operation.BULK_DELETE:
                raise _mismatch()
            if params["record_id"] == "b":
                raise _mismatch()
            return Structured({"status": 0})

        gateway.run_json.side_effect = run_json

        deleted = await ops.delete_logs(["a", "b"])

        assert deleted == 1
        assert calls == [
            (Operation.BULK_DELETE, None),
            (Operation.DELETE_RECORD, "a"),
            (Operation.DELETE_RECORD, "b"),
        ]

    @pytest.mark.asyncio
    async def test_delete_all_queries_ids(self, ops: LogOps, gateway: MagicMock) -> None:
        gateway.query.return_value = [{"Id": "a"}, {"Id": "b"}, {"Id": None}]
        gateway.run_json.return_value = Structured({"status": 0})

        assert await ops.delete_all_logs() == 2
        assert gateway.query.await_args.args[0] == "SELECT Id FROM ApexLog"

    @pytest.mark.asyncio
    async def test_nothing_to_delete(self, ops: LogOps, gateway: MagicMock) -> None:
        assert await ops.delete_logs([]) == 0
        gateway.run_json.assert_not_awaited()
