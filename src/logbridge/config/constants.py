"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are protocol constraints of the external tool and cache invariants.

For configurable values, see models.py (ToolConfig, CacheConfig, LogsConfig).
"""

# =============================================================================
# Process Capture
# =============================================================================

DEFAULT_MAX_BUFFER_BYTES = 10 * 1024 * 1024
"""Default ceiling for captured stdout/stderr of one command (10 MiB)."""

LARGE_LOG_BUFFER_BYTES = 100 * 1024 * 1024
"""Ceiling used when a log body is captured directly from stdout (100 MiB)."""

# =============================================================================
# Cache
# =============================================================================

ORG_LIST_TTL_SEC = 24 * 60 * 60
"""Age after which an org-list snapshot is treated as absent."""

LOG_CACHE_FILE = "logs.json"
ORG_LIST_CACHE_FILE = "org-list.json"
TEST_CLASS_CACHE_FILE = "test-classes.json"

# =============================================================================
# Org Listing
# =============================================================================

ACCEPTED_CONNECTION_STATES = frozenset({"active", "connected", "connected-ephemeral"})
"""Connection states (lower-cased) that keep an org in the listing."""

# =============================================================================
# File Naming
# =============================================================================

UNSAFE_FILENAME_CHARS = '/\\:*?"<>|'
"""Characters replaced with '_' when an identifier becomes part of a file name."""

# =============================================================================
# Test Runs
# =============================================================================

TERMINAL_TEST_RUN_STATES = frozenset({"completed", "passed", "failed", "aborted"})
"""Test run states (lower-cased) after which a run never changes.

The CLI summarizes a completed run whose tests all passed as "Passed".
"""

TEST_OPERATION_MARKERS = ("apextest", "test")
"""Substrings (lower-cased) of a log operation that indicate a test execution."""
