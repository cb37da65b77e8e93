"""Org-list snapshot cache with a fixed time-to-live."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from logbridge.cache.store import JsonDocumentStore, load_model, now_ms
from logbridge.config.constants import ORG_LIST_CACHE_FILE, ORG_LIST_TTL_SEC

log = structlog.get_logger(__name__)


class OrgListSnapshot(BaseModel):
    """Categorized org listing and when it was captured."""

    model_config = ConfigDict(frozen=True)

    orgs: dict[str, list[dict[str, Any]]]
    timestamp: int  # epoch millis


class OrgListCache:
    """Snapshot of the last org listing.

    A snapshot older than the TTL reads as absent. It stays on disk until
    the next ``save`` supersedes it.
    """

    def __init__(
        self,
        directory: Path,
        *,
        ttl_sec: float = ORG_LIST_TTL_SEC,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._doc = JsonDocumentStore(directory / ORG_LIST_CACHE_FILE)
        self._ttl_ms = int(ttl_sec * 1000)
        self._clock = clock

    def get(self) -> OrgListSnapshot | None:
        data = self._doc.read()
        if not data:
            return None
        snapshot = load_model(OrgListSnapshot, data, path=str(self._doc.path))
        if snapshot is None:
            return None
        age = self._clock() - snapshot.timestamp
        if age > self._ttl_ms:
            log.debug("org_list_snapshot_stale", age_ms=age)
            return None
        return snapshot

    def save(self, orgs: Mapping[str, list[Mapping[str, Any]]]) -> OrgListSnapshot:
        snapshot = OrgListSnapshot(
            orgs={k: [dict(o) for o in v] for k, v in orgs.items()},
            timestamp=self._clock(),
        )
        self._doc.write(snapshot.model_dump())
        return snapshot

    def clear(self) -> None:
        self._doc.write({})
