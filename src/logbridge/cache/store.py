"""File-backed JSON documents and the per-org cache record."""

from __future__ import annotations

import json
import os
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError

from logbridge.config.constants import LOG_CACHE_FILE
from logbridge.core.errors import InternalError

log = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def load_model(model: type[M], data: Any, **context: Any) -> M | None:
    """Validate stored *data* as *model*; None, with a warning, when it does not fit."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        log.warning(
            "cache_entry_invalid", model=model.__name__, errors=e.error_count(), **context
        )
        return None


def load_models(model: type[M], items: Iterable[Any], **context: Any) -> list[M]:
    """Validate a stored list item by item; any invalid item discards the whole list."""
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        log.warning(
            "cache_entry_invalid", model=model.__name__, errors=e.error_count(), **context
        )
        return []


class JsonDocumentStore:
    """One JSON object persisted as a whole file.

    The directory and an empty document are created on construction (a
    no-op when they exist). Unreadable or corrupt content reads as an
    empty document. Every write replaces the file through a sibling
    temporary file and a rename.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self.write({})

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("cache_document_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            log.warning("cache_document_not_object", path=str(self._path))
            return {}
        return data

    def write(self, data: Mapping[str, Any]) -> None:
        tmp = self._path.with_name(f"{self._path.name}.{os.getpid()}.tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)


class CacheRecord(BaseModel):
    """Everything cached for one org alias."""

    logs: list[dict[str, Any]] = Field(default_factory=list)
    last_fetch: int | None = None  # epoch millis
    downloaded_ids: list[str] = Field(default_factory=list)
    log_paths: dict[str, str] = Field(default_factory=dict)
    selected_org: dict[str, Any] | None = None
    selected_org_at: int | None = None  # epoch millis


class OrgCacheStore:
    """Per-alias cache records kept in one document.

    Every mutation is a read-modify-write of the whole document. Concurrent
    writers for the same alias must be serialized by the caller.
    """

    def __init__(
        self, directory: Path, *, clock: Callable[[], int] = now_ms
    ) -> None:
        self._doc = JsonDocumentStore(directory / LOG_CACHE_FILE)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._doc.path

    def get(self, alias: str) -> CacheRecord:
        """Return the record for *alias*; an unknown or invalid entry yields empty defaults."""
        return self._record(self._doc.read(), alias)

    def put(self, alias: str, patch: Mapping[str, Any]) -> CacheRecord:
        """Merge *patch* into the record for *alias* and persist the document."""
        unknown = set(patch) - set(CacheRecord.model_fields)
        if unknown:
            raise InternalError.unexpected(
                f"unknown cache record fields: {', '.join(sorted(unknown))}", alias=alias
            )
        data = self._doc.read()
        record = self._record(data, alias).model_copy(update=dict(patch))
        data[alias] = record.model_dump()
        self._doc.write(data)
        return record

    def _record(self, data: Mapping[str, Any], alias: str) -> CacheRecord:
        entry = data.get(alias)
        if entry is None:
            return CacheRecord()
        return load_model(CacheRecord, entry, alias=alias) or CacheRecord()

    def clear(self, alias: str) -> None:
        data = self._doc.read()
        if data.pop(alias, None) is not None:
            self._doc.write(data)
            log.info("cache_cleared", alias=alias)

    def clear_all(self) -> None:
        self._doc.write({})
        log.info("cache_cleared_all")

    def save_logs(self, alias: str, logs: Iterable[Mapping[str, Any]]) -> CacheRecord:
        return self.put(alias, {"logs": [dict(item) for item in logs], "last_fetch": self._clock()})

    def mark_downloaded(self, alias: str, log_id: str, path: Path) -> CacheRecord:
        record = self.get(alias)
        downloaded = list(record.downloaded_ids)
        if log_id not in downloaded:
            downloaded.append(log_id)
        paths = {**record.log_paths, log_id: str(path)}
        return self.put(alias, {"downloaded_ids": downloaded, "log_paths": paths})

    def forget_logs(self, alias: str, log_ids: Iterable[str]) -> CacheRecord:
        """Drop deleted logs from the cached listing and download state."""
        gone = set(log_ids)
        record = self.get(alias)
        return self.put(
            alias,
            {
                "logs": [item for item in record.logs if item.get("id") not in gone],
                "downloaded_ids": [i for i in record.downloaded_ids if i not in gone],
                "log_paths": {k: v for k, v in record.log_paths.items() if k not in gone},
            },
        )

    def save_selected_org(self, alias: str, org: Mapping[str, Any]) -> CacheRecord:
        return self.put(alias, {"selected_org": dict(org), "selected_org_at": self._clock()})
