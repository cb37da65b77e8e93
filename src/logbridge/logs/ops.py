"""Log operations - list, fetch, download and delete debug logs."""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

import structlog

from logbridge.cache.store import CacheRecord, OrgCacheStore, load_models
from logbridge.config.models import LogsConfig
from logbridge.core.errors import (
    LogBridgeError,
    NoDefaultEnvironmentError,
    ToolUnavailableError,
)
from logbridge.logs.fetcher import LogFetcher
from logbridge.logs.models import LogEntity
from logbridge.orgs.ops import OrgOps
from logbridge.tool.gateway import CliGateway
from logbridge.tool.models import Operation
from logbridge.tool.response import extract_records

log = structlog.get_logger(__name__)

_LOG_FIELDS = (
    "Id, LogUser.Name, Application, Operation, Request, Status, "
    "LogLength, LastModifiedDate, StartTime"
)

# Failures that no other command form can get around
_FATAL = (ToolUnavailableError, NoDefaultEnvironmentError)

# Minutes a bulk delete job may take before the CLI stops waiting
_BULK_WAIT_MINUTES = 10


class LogOps:
    """Debug log operations for the current default org."""

    def __init__(
        self,
        gateway: CliGateway,
        fetcher: LogFetcher,
        store: OrgCacheStore,
        orgs: OrgOps,
        config: LogsConfig | None = None,
        *,
        logs_dir: Path,
    ) -> None:
        self._gateway = gateway
        self._fetcher = fetcher
        self._store = store
        self._orgs = orgs
        self._config = config or LogsConfig()
        self._logs_dir = logs_dir

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir

    async def list_logs(self, *, force_refresh: bool = False) -> list[LogEntity]:
        """Recent logs of the default org.

        Served from the cache unless it is empty or *force_refresh* is set.
        A live listing falls back to a log query when the list command fails
        in both dialects.
        """
        alias = await self._orgs.current_alias()
        record = await asyncio.to_thread(self._store.get, alias)
        cached = _cached_entries(alias, record)
        if cached and not force_refresh:
            log.debug("log_list_cache_hit", alias=alias, logs=len(cached))
            return cached

        try:
            parsed = await self._gateway.run_json(Operation.LIST_LOGS, target_org=alias)
            entries = [LogEntity.from_record(r) for r in extract_records(parsed) if r.get("Id")]
        except _FATAL:
            raise
        except LogBridgeError as e:
            log.warning("log_list_failed_using_query", alias=alias, error=e.message)
            entries = await self.query_logs()

        entries = [_with_download_state(e, record) for e in entries]
        await asyncio.to_thread(self._store.save_logs, alias, [e.model_dump() for e in entries])
        log.info("log_list_refreshed", alias=alias, logs=len(entries))
        return entries

    async def cached_logs(self) -> list[LogEntity]:
        """Logs cached for the default org; the org itself is not asked."""
        alias = await self._orgs.current_alias()
        record = await asyncio.to_thread(self._store.get, alias)
        return _cached_entries(alias, record)

    async def query_logs(self, limit: int | None = None) -> list[LogEntity]:
        """Recent logs through a tooling query instead of the list command."""
        alias = await self._orgs.current_alias()
        soql = (
            f"SELECT {_LOG_FIELDS} FROM ApexLog "
            f"ORDER BY StartTime DESC LIMIT {limit or self._config.list_limit}"
        )
        records = await self._gateway.query(soql, tooling=True, target_org=alias)
        return [LogEntity.from_record(r) for r in records if r.get("Id")]

    async def get_log_body(self, log_id: str) -> str:
        """Body of *log_id*, from its downloaded copy when that still exists."""
        alias = await self._orgs.current_alias()
        record = await asyncio.to_thread(self._store.get, alias)
        local = record.log_paths.get(log_id)
        if local:
            try:
                return await asyncio.to_thread(Path(local).read_text, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                log.info("downloaded_log_unreadable", log_id=log_id, path=local, error=str(e))
        return await self._fetcher.fetch(log_id, alias)

    async def download_log(self, log_id: str) -> Path:
        """Write *log_id* into the logs directory and mark it downloaded."""
        alias = await self._orgs.current_alias()
        record = await asyncio.to_thread(self._store.get, alias)
        entry = next(
            (e for e in load_models(LogEntity, record.logs, alias=alias) if e.id == log_id),
            LogEntity(id=log_id),
        )
        path = await self._fetcher.download(entry, self._logs_dir, alias)
        await asyncio.to_thread(self._store.mark_downloaded, alias, log_id, path)
        return path

    async def delete_logs(self, log_ids: Sequence[str]) -> int:
        """Delete logs from the org in batches; return how many were deleted.

        Each batch is one bulk delete. A batch whose bulk delete fails is
        retried one record at a time; records that still fail are skipped.
        """
        alias = await self._orgs.current_alias()
        size = self._config.delete_batch_size
        deleted: list[str] = []
        for start in range(0, len(log_ids), size):
            batch = list(log_ids[start : start + size])
            try:
                await self._bulk_delete(batch, alias)
                deleted.extend(batch)
                continue
            except _FATAL:
                raise
            except LogBridgeError as e:
                log.warning("bulk_delete_failed", alias=alias, batch=len(batch), error=e.message)

            for log_id in batch:
                try:
                    await self._gateway.run_json(
                        Operation.DELETE_RECORD,
                        sobject="ApexLog",
                        record_id=log_id,
                        target_org=alias,
                    )
                except _FATAL:
                    raise
                except LogBridgeError as e:
                    log.warning("log_delete_failed", log_id=log_id, error=e.message)
                    continue
                deleted.append(log_id)

        await asyncio.to_thread(self._store.forget_logs, alias, deleted)
        log.info("logs_deleted", alias=alias, requested=len(log_ids), deleted=len(deleted))
        return len(deleted)

    async def query_log_ids(self) -> list[str]:
        """Ids of every log stored in the org."""
        alias = await self._orgs.current_alias()
        records = await self._gateway.query(
            "SELECT Id FROM ApexLog", tooling=True, target_org=alias
        )
        return [str(r["Id"]) for r in records if r.get("Id")]

    async def delete_all_logs(self) -> int:
        return await self.delete_logs(await self.query_log_ids())

    async def _bulk_delete(self, batch: list[str], alias: str) -> None:
        fd, name = tempfile.mkstemp(
            prefix=f"{self._gateway.config.temp_prefix}_delete_", suffix=".csv"
        )
        csv_path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write("Id\n" + "\n".join(batch) + "\n")
            await self._gateway.run_json(
                Operation.BULK_DELETE,
                sobject="ApexLog",
                file=str(csv_path),
                wait=_BULK_WAIT_MINUTES,
                target_org=alias,
            )
        finally:
            csv_path.unlink(missing_ok=True)


def _cached_entries(alias: str, record: CacheRecord) -> list[LogEntity]:
    entries = load_models(LogEntity, record.logs, alias=alias)
    return [_with_download_state(e, record) for e in entries]


def _with_download_state(entry: LogEntity, record: CacheRecord) -> LogEntity:
    local = record.log_paths.get(entry.id)
    entry.downloaded = entry.id in record.downloaded_ids
    entry.local_path = local
    return entry
