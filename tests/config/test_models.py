"""Tests for config models and constants."""

import pytest
from pydantic import ValidationError

from logbridge.config.constants import (
    ACCEPTED_CONNECTION_STATES,
    DEFAULT_MAX_BUFFER_BYTES,
    LARGE_LOG_BUFFER_BYTES,
    ORG_LIST_TTL_SEC,
)
from logbridge.config.models import LogBridgeConfig, LogOutputConfig, LogsConfig, ToolConfig


class TestConstants:
    def test_buffer_ceilings(self) -> None:
        assert DEFAULT_MAX_BUFFER_BYTES == 10 * 1024 * 1024
        assert LARGE_LOG_BUFFER_BYTES == 100 * 1024 * 1024

    def test_org_list_ttl_is_one_day(self) -> None:
        assert ORG_LIST_TTL_SEC == 86400

    def test_accepted_states_are_lower_case(self) -> None:
        assert ACCEPTED_CONNECTION_STATES == {"active", "connected", "connected-ephemeral"}


class TestToolConfig:
    def test_rejects_non_positive_buffer(self) -> None:
        with pytest.raises(ValidationError):
            ToolConfig(max_buffer_bytes=0)

    def test_defaults(self) -> None:
        config = ToolConfig()
        assert config.timeout_sec is None
        assert config.large_buffer_bytes == LARGE_LOG_BUFFER_BYTES
        assert config.temp_prefix == "logbridge"


class TestLogsConfig:
    def test_rejects_non_positive_batch(self) -> None:
        with pytest.raises(ValidationError):
            LogsConfig(delete_batch_size=0)


class TestLogOutputConfig:
    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="relative/log.txt")

    def test_stream_destinations_accepted(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"


class TestRootConfig:
    def test_has_all_sections(self) -> None:
        config = LogBridgeConfig()
        assert config.orgs.alias_ttl_sec == 300.0
        assert config.logs.directory == ".logbridge/logs"
