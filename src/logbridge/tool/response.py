"""Response normalization for CLI output.

The CLI wraps its payload in a JSON envelope whose shape differs between
versions and commands. Parsing never raises: text that is not JSON comes
back as ``NotStructured`` so callers can treat it as the payload itself.
Extraction tries the known shapes in a fixed order and returns the first
non-empty match.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from logbridge.core.errors import MalformedResponseError


@dataclass(frozen=True, slots=True)
class Structured:
    """Output that parsed as JSON."""

    data: Any


@dataclass(frozen=True, slots=True)
class NotStructured:
    """Output that is not JSON, kept verbatim."""

    text: str


Parsed = Structured | NotStructured

DEFAULT_RECORD_FIELDS = ("records",)
DEFAULT_TEXT_FIELDS = ("log", "body", "content", "text")

# Lines the CLI prints at error level when not in JSON mode
_ERROR_LINE = re.compile(r"^\s*(Error \(|ERROR running|Error:)", re.MULTILINE)


def parse_envelope(text: str) -> Parsed:
    """Parse *text* as a JSON envelope, or tag it as not structured.

    Leading banner lines (e.g. update notices printed before the JSON) are
    skipped: parsing is retried from the first line that opens an object or
    array.
    """
    stripped = text.strip()
    if not stripped:
        return NotStructured(text)
    try:
        return Structured(json.loads(stripped))
    except json.JSONDecodeError:
        pass

    offset = _first_json_line(stripped)
    if offset > 0:
        try:
            return Structured(json.loads(stripped[offset:]))
        except json.JSONDecodeError:
            pass
    return NotStructured(text)


def _first_json_line(text: str) -> int:
    position = 0
    for line in text.splitlines(keepends=True):
        if line.lstrip().startswith(("{", "[")):
            return position
        position += len(line)
    return -1


def _result(parsed: Parsed) -> Any:
    if isinstance(parsed, Structured) and isinstance(parsed.data, dict):
        return parsed.data.get("result")
    return None


def _is_wrapper(items: list[Any], fields: tuple[str, ...]) -> bool:
    """True for ``[{"<field>": [...]}]`` - a one-element list wrapping the records."""
    if len(items) != 1 or not isinstance(items[0], dict):
        return False
    return any(isinstance(items[0].get(f), list) for f in fields)


def extract_records(
    parsed: Parsed, fields: tuple[str, ...] = DEFAULT_RECORD_FIELDS
) -> list[dict[str, Any]]:
    """Extract the record list from any known envelope shape.

    Priority order:
        1. top-level array
        2. ``.result`` array
        3. ``.result.<field>``
        4. ``.result[0].<field>``

    Returns an empty list if nothing matches.
    """
    if not isinstance(parsed, Structured):
        return []

    data = parsed.data
    if isinstance(data, list) and data:
        return _records(data)

    result = _result(parsed)
    if isinstance(result, list) and result and not _is_wrapper(result, fields):
        return _records(result)

    if isinstance(result, dict):
        for name in fields:
            value = result.get(name)
            if isinstance(value, list) and value:
                return _records(value)

    if isinstance(result, list) and result and isinstance(result[0], dict):
        for name in fields:
            value = result[0].get(name)
            if isinstance(value, list) and value:
                return _records(value)

    return []


def _records(items: list[Any]) -> list[dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)]


def extract_text(parsed: Parsed, fields: tuple[str, ...] = DEFAULT_TEXT_FIELDS) -> str | None:
    """Extract a text payload (e.g. a log body) from an envelope.

    Priority order: ``.result`` string, ``.result.<field>``,
    ``.result[0].<field>``. Returns None when nothing matches.
    """
    result = _result(parsed)
    if isinstance(result, str) and result:
        return result
    if isinstance(result, dict):
        for name in fields:
            value = result.get(name)
            if isinstance(value, str) and value:
                return value
    if isinstance(result, list) and result and isinstance(result[0], dict):
        for name in fields:
            value = result[0].get(name)
            if isinstance(value, str) and value:
                return value
    return None


def extract_object(parsed: Parsed) -> dict[str, Any] | None:
    """Return ``.result`` when it is a mapping."""
    result = _result(parsed)
    return result if isinstance(result, dict) else None


def require_single_record(records: list[dict[str, Any]], what: str) -> dict[str, Any]:
    """Return the only expected record, or raise MalformedResponseError."""
    if not records:
        raise MalformedResponseError.missing(what)
    return records[0]


def error_marker(text: str) -> str | None:
    """Return the tool's own error message if *text* reports a failure.

    Recognizes a JSON envelope with a non-zero ``status`` and an error
    ``name``/``message``, and the CLI's human-readable error lines.
    """
    parsed = parse_envelope(text)
    if isinstance(parsed, Structured):
        data = parsed.data
        if isinstance(data, dict):
            status = data.get("status")
            if isinstance(status, int) and status != 0 and ("name" in data or "message" in data):
                return str(data.get("message") or data.get("name"))
        return None
    match = _ERROR_LINE.search(text)
    if match is None:
        return None
    line_end = text.find("\n", match.start())
    return text[match.start() : line_end if line_end != -1 else None].strip()
