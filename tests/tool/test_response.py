"""Tests for CLI envelope parsing and extraction."""

import json

import pytest

from logbridge.core.errors import MalformedResponseError
from logbridge.tool.response import (
    NotStructured,
    Structured,
    error_marker,
    extract_object,
    extract_records,
    extract_text,
    parse_envelope,
    require_single_record,
)

RECORDS = [{"Id": "07L1"}, {"Id": "07L2"}]


class TestParseEnvelope:
    """parse_envelope never raises."""

    def test_json_object(self) -> None:
        assert parse_envelope('{"status": 0}') == Structured({"status": 0})

    def test_plain_text_is_not_structured(self) -> None:
        text = "12:00:00.0 (1)|EXECUTION_STARTED\n"
        assert parse_envelope(text) == NotStructured(text)

    def test_empty_text_is_not_structured(self) -> None:
        assert isinstance(parse_envelope("   "), NotStructured)

    def test_banner_before_json_is_skipped(self) -> None:
        text = (
            "Warning: @salesforce/cli update available from 2.10.0 to 2.11.0.\n"
            '{"status": 0, "result": []}\n'
        )
        assert parse_envelope(text) == Structured({"status": 0, "result": []})

    def test_truncated_json_is_not_structured(self) -> None:
        assert isinstance(parse_envelope('{"status": 0, "result": ['), NotStructured)


class TestExtractRecords:
    """Every known envelope shape yields the same records."""

    @pytest.mark.parametrize(
        "payload",
        [
            RECORDS,
            {"status": 0, "result": RECORDS},
            {"status": 0, "result": {"records": RECORDS, "totalSize": 2}},
            {"status": 0, "result": [{"records": RECORDS}]},
        ],
        ids=["top-level-array", "result-array", "result-records", "result-wrapped-records"],
    )
    def test_shapes_are_equivalent(self, payload: object) -> None:
        assert extract_records(parse_envelope(json.dumps(payload))) == RECORDS

    def test_custom_field_names(self) -> None:
        payload = {"result": {"nonScratchOrgs": [{"alias": "dev"}]}}
        parsed = parse_envelope(json.dumps(payload))

        assert extract_records(parsed, ("scratchOrgs", "nonScratchOrgs")) == [{"alias": "dev"}]

    def test_unmatched_shape_is_empty(self) -> None:
        assert extract_records(parse_envelope('{"result": {"totalSize": 0}}')) == []

    def test_not_structured_is_empty(self) -> None:
        assert extract_records(NotStructured("oops")) == []

    def test_non_dict_items_dropped(self) -> None:
        assert extract_records(Structured({"result": [1, {"Id": "a"}]})) == [{"Id": "a"}]


class TestExtractText:
    @pytest.mark.parametrize(
        "payload",
        [
            {"result": "LOG BODY"},
            {"result": {"log": "LOG BODY"}},
            {"result": [{"log": "LOG BODY"}]},
        ],
    )
    def test_text_shapes(self, payload: object) -> None:
        assert extract_text(Structured(payload)) == "LOG BODY"

    def test_empty_text_is_none(self) -> None:
        assert extract_text(Structured({"result": [{"log": ""}]})) is None

    def test_not_structured_is_none(self) -> None:
        assert extract_text(NotStructured("LOG BODY")) is None


class TestExtractObject:
    def test_result_mapping(self) -> None:
        assert extract_object(Structured({"result": {"id": "005"}})) == {"id": "005"}

    def test_result_list_is_none(self) -> None:
        assert extract_object(Structured({"result": []})) is None


class TestRequireSingleRecord:
    def test_returns_first(self) -> None:
        assert require_single_record(RECORDS, "ApexLog") == {"Id": "07L1"}

    def test_empty_raises(self) -> None:
        with pytest.raises(MalformedResponseError, match="ApexLog"):
            require_single_record([], "ApexLog")


class TestErrorMarker:
    """Recognizing the tool's own error reports in stdout."""

    def test_json_error_envelope(self) -> None:
        text = json.dumps({"status": 1, "name": "NoOrgFound", "message": "No org found"})
        assert error_marker(text) == "No org found"

    def test_json_success_envelope(self) -> None:
        assert error_marker(json.dumps({"status": 0, "result": []})) is None

    def test_human_readable_error_line(self) -> None:
        text = "Fetching log...\nError (1): Unknown flag --log-id\nmore"
        assert error_marker(text) == "Error (1): Unknown flag --log-id"

    def test_log_body_is_not_an_error(self) -> None:
        text = "47.0 APEX_CODE,FINEST\n12:00:00.0 (1)|USER_DEBUG|[3]|DEBUG|an Error: inline\n"
        assert error_marker(text) is None
