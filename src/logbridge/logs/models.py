"""Debug log models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from logbridge.config.constants import UNSAFE_FILENAME_CHARS

_UNSAFE = str.maketrans({c: "_" for c in UNSAFE_FILENAME_CHARS})


def sanitize_filename(value: str) -> str:
    """Replace characters that are unsafe in file names with ``_``."""
    return value.translate(_UNSAFE)


class LogEntity(BaseModel):
    """One debug log known to the remote org."""

    id: str
    log_user: str = ""
    application: str = ""
    operation: str = ""
    request: str = ""
    status: str = ""
    log_length: int = 0
    last_modified: str = ""  # ISO-8601
    start_time: str | None = None  # ISO-8601
    downloaded: bool = False
    local_path: str | None = None

    @property
    def timestamp(self) -> str:
        """Start time when known, else last-modified time."""
        return self.start_time or self.last_modified

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> LogEntity:
        """Build from an ``ApexLog`` record as returned by the CLI or a query."""
        user = record.get("LogUser")
        return cls(
            id=str(record.get("Id", "")),
            log_user=str(user.get("Name", "")) if isinstance(user, dict) else "",
            application=str(record.get("Application") or ""),
            operation=str(record.get("Operation") or ""),
            request=str(record.get("Request") or ""),
            status=str(record.get("Status") or ""),
            log_length=_as_int(record.get("LogLength")),
            last_modified=str(record.get("LastModifiedDate") or ""),
            start_time=record.get("StartTime") or None,
        )

    def download_filename(self) -> str:
        """File name for a downloaded copy of this log."""
        parts = [self.id, self.operation, self.status, str(self.log_length), self.timestamp]
        return sanitize_filename("_".join(p.replace(" ", "-") for p in parts)) + ".log"


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
