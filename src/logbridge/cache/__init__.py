"""Cache module - org-scoped JSON documents under the project cache directory."""

from logbridge.cache.org_list import OrgListCache, OrgListSnapshot
from logbridge.cache.store import (
    CacheRecord,
    JsonDocumentStore,
    OrgCacheStore,
    load_model,
    load_models,
    now_ms,
)
from logbridge.cache.test_classes import TestClassIndex, TestClassStore

__all__ = [
    "CacheRecord",
    "JsonDocumentStore",
    "OrgCacheStore",
    "OrgListCache",
    "OrgListSnapshot",
    "TestClassIndex",
    "TestClassStore",
    "load_model",
    "load_models",
    "now_ms",
]
