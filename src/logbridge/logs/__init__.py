"""Logs module - debug log listing, fetching and download."""

from logbridge.logs.fetcher import LogFetcher
from logbridge.logs.models import LogEntity, sanitize_filename
from logbridge.logs.ops import LogOps

__all__ = ["LogEntity", "LogFetcher", "LogOps", "sanitize_filename"]
