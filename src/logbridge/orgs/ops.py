"""Org operations - listing, default org resolution and selection."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

import structlog

from logbridge.cache.org_list import OrgListCache
from logbridge.cache.store import OrgCacheStore, load_model
from logbridge.config.models import OrgsConfig
from logbridge.core.errors import (
    MalformedResponseError,
    NoDefaultEnvironmentError,
    ToolUnavailableError,
)
from logbridge.core.memo import TtlMemo
from logbridge.orgs.models import OrgGroups, group_orgs
from logbridge.orgs.refresh import RefreshCoordinator, RefreshOutcome
from logbridge.tool.fallback import FunctionStrategy, StrategiesExhaustedError, first_success
from logbridge.tool.gateway import CliGateway
from logbridge.tool.models import Operation
from logbridge.tool.response import extract_object, extract_records

log = structlog.get_logger(__name__)


class OrgOps:
    """Org operations for one project.

    The resolved default org and the current user id are memoized for
    ``OrgsConfig.alias_ttl_sec``; changing the default org drops both.
    """

    def __init__(
        self,
        gateway: CliGateway,
        org_list: OrgListCache,
        store: OrgCacheStore,
        config: OrgsConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._org_list = org_list
        self._store = store
        ttl = (config or OrgsConfig()).alias_ttl_sec
        self._alias_memo: TtlMemo[str] = TtlMemo(ttl, clock=clock)
        self._user_memo: TtlMemo[str] = TtlMemo(ttl, clock=clock)
        self._refresh = RefreshCoordinator("org list refresh")

    async def list_orgs(self, *, force_refresh: bool = False) -> OrgGroups:
        """Categorized orgs, from the snapshot unless it is stale or *force_refresh*."""
        if not force_refresh:
            snapshot = await asyncio.to_thread(self._org_list.get)
            cached = load_model(OrgGroups, snapshot.orgs) if snapshot else None
            if cached is not None:
                log.debug("org_list_cache_hit", timestamp=snapshot.timestamp)
                return cached

        parsed = await self._gateway.run_json(Operation.LIST_ORGS)
        data = parsed.data
        result = data.get("result") if isinstance(data, dict) else data
        groups = group_orgs(result)
        await asyncio.to_thread(self._org_list.save, groups.model_dump(mode="json"))
        log.info("org_list_refreshed", orgs=len(groups.all()))
        return groups

    async def refresh_orgs(self) -> RefreshOutcome[OrgGroups]:
        """Re-list orgs unless a refresh is already running."""
        return await self._refresh.run(lambda: self.list_orgs(force_refresh=True))

    async def current_alias(self) -> str:
        """Alias (or username) of the default org.

        Raises:
            ToolUnavailableError: Neither CLI executable can be run.
            NoDefaultEnvironmentError: No default org is configured.
        """
        cached = self._alias_memo.get()
        if cached is not None:
            return cached

        try:
            source, alias = await first_success(
                [
                    FunctionStrategy("config", self._alias_from_config),
                    FunctionStrategy("display", self._alias_from_display),
                ]
            )
        except StrategiesExhaustedError as e:
            for attempt in e.attempts:
                if isinstance(attempt.error, ToolUnavailableError):
                    raise attempt.error from e
            raise NoDefaultEnvironmentError.not_configured(e.attempts[-1].reason) from e

        log.debug("default_org_resolved", alias=alias, source=source)
        return self._alias_memo.set(alias)

    async def current_user_id(self) -> str:
        """Id of the user the default org is authorized as."""
        alias = await self.current_alias()
        cached = self._user_memo.get(alias)
        if cached is not None:
            return cached

        parsed = await self._gateway.run_json(Operation.DISPLAY_USER, target_org=alias)
        info = extract_object(parsed) or {}
        user_id = info.get("id") or info.get("userId")
        if not user_id:
            raise MalformedResponseError.missing("user id", "org display user returned no id")
        return self._user_memo.set(str(user_id), alias)

    async def set_default_org(self, alias: str) -> dict[str, Any]:
        """Make *alias* the default org and remember it as the selected org."""
        await self._gateway.run_json(Operation.SET_DEFAULT_ORG, alias=alias)
        self._alias_memo.invalidate()
        self._user_memo.invalidate()

        snapshot = await asyncio.to_thread(self._org_list.get)
        cached = load_model(OrgGroups, snapshot.orgs) if snapshot else None
        org = cached.find(alias) if cached else None
        selected = org.model_dump(mode="json") if org else {"alias": alias, "username": alias}
        await asyncio.to_thread(self._store.save_selected_org, alias, selected)
        self._alias_memo.set(alias)
        log.info("default_org_set", alias=alias)
        return selected

    async def selected_org(self) -> dict[str, Any] | None:
        """The org recorded by ``set_default_org`` for the current default alias."""
        alias = await self.current_alias()
        record = await asyncio.to_thread(self._store.get, alias)
        return record.selected_org

    async def _alias_from_config(self) -> str:
        parsed = await self._gateway.run_json(
            Operation.GET_CONFIG, key="target-org", legacy_key="defaultusername"
        )
        for record in extract_records(parsed):
            value = record.get("value")
            if value:
                return str(value)
        raise NoDefaultEnvironmentError.not_configured("target-org is not set")

    async def _alias_from_display(self) -> str:
        parsed = await self._gateway.run_json(Operation.DISPLAY_ORG)
        info = extract_object(parsed) or {}
        alias = info.get("alias") or info.get("username")
        if not alias:
            raise NoDefaultEnvironmentError.not_configured("org display returned no org")
        return str(alias)

