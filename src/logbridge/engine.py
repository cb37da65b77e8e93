"""Engine - wires one project's configuration, caches and operations together."""

from __future__ import annotations

from pathlib import Path

import structlog

from logbridge.cache.org_list import OrgListCache
from logbridge.cache.store import OrgCacheStore
from logbridge.cache.test_classes import TestClassStore
from logbridge.config.loader import PROJECT_DIR_NAME, load_config, resolve_project_path
from logbridge.config.models import LogBridgeConfig
from logbridge.logs.fetcher import LogFetcher
from logbridge.logs.ops import LogOps
from logbridge.orgs.ops import OrgOps
from logbridge.testrun.ops import TestOps
from logbridge.tool.gateway import CliGateway

log = structlog.get_logger(__name__)

# Files that mark the root of a Salesforce project
_PROJECT_MARKERS = ("sfdx-project.json", PROJECT_DIR_NAME)


def find_project_root(start_path: Path | None = None) -> Path:
    """Walk up from *start_path* to the nearest project root.

    Falls back to *start_path* (or the working directory) when no marker
    is found.
    """
    start = (start_path or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _PROJECT_MARKERS):
            return candidate
    return start


class LogBridgeEngine:
    """All operations for one project root.

    Attributes:
        logs: Debug log listing, download and deletion.
        orgs: Org listing and default org selection.
        tests: Test runs, log correlation, queries and trace flags.
    """

    def __init__(
        self,
        project_root: Path,
        config: LogBridgeConfig | None = None,
        *,
        gateway: CliGateway | None = None,
    ) -> None:
        self.project_root = project_root
        self.config = config or load_config(project_root)

        cache_dir = resolve_project_path(project_root, self.config.cache.directory)
        logs_dir = resolve_project_path(project_root, self.config.logs.directory)

        self.gateway = gateway or CliGateway(self.config.tool, cwd=project_root)
        self.store = OrgCacheStore(cache_dir)
        self.org_list = OrgListCache(cache_dir)
        self.test_classes = TestClassStore(cache_dir)

        self.orgs = OrgOps(self.gateway, self.org_list, self.store, self.config.orgs)
        self.logs = LogOps(
            self.gateway,
            LogFetcher(self.gateway),
            self.store,
            self.orgs,
            self.config.logs,
            logs_dir=logs_dir,
        )
        self.tests = TestOps(self.gateway, self.logs, self.orgs, self.test_classes)

    @classmethod
    def open(cls, start_path: Path | None = None) -> LogBridgeEngine:
        """Engine for the project containing *start_path*."""
        root = find_project_root(start_path)
        log.debug("engine_opened", project_root=str(root))
        return cls(root)

    def clear_cache(self, alias: str | None = None) -> None:
        """Drop cached state for *alias*, or every cache document when None."""
        if alias is None:
            self.store.clear_all()
            self.test_classes.clear_all()
            self.org_list.clear()
        else:
            self.store.clear(alias)
            self.test_classes.clear(alias)
