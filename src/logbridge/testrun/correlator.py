"""Match an asynchronous test run to the debug log it produced.

Test results rarely reference their log directly, so the fallback is a
timestamp heuristic: the newest log at or after the run's start time,
preferring logs whose operation marks a test execution. Two overlapping
runs by the same user can be confused; nothing in the log listing tells
them apart.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from logbridge.config.constants import TEST_OPERATION_MARKERS
from logbridge.logs.models import LogEntity
from logbridge.testrun.models import TestRun

log = structlog.get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as the CLI prints it; naive values are UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class LogCorrelator:
    """Pure selection of the log belonging to a test run."""

    def __init__(self, markers: Sequence[str] = TEST_OPERATION_MARKERS) -> None:
        self._markers = tuple(m.lower() for m in markers)

    def is_test_operation(self, entry: LogEntity) -> bool:
        operation = entry.operation.lower()
        return any(marker in operation for marker in self._markers)

    def order(self, candidates: Sequence[LogEntity]) -> list[LogEntity]:
        """Newest first; entries with equal timestamps keep their input order."""
        return sorted(
            candidates,
            key=lambda e: parse_timestamp(e.timestamp) or _EPOCH,
            reverse=True,
        )

    def select(self, started: datetime, candidates: Sequence[LogEntity]) -> LogEntity | None:
        """Pick the best candidate at or after *started*, or None."""
        eligible = [
            entry
            for entry in self.order(candidates)
            if (ts := parse_timestamp(entry.timestamp)) is not None and ts >= started
        ]
        if not eligible:
            return None
        return next((e for e in eligible if self.is_test_operation(e)), eligible[0])

    def correlate(self, run: TestRun, candidates: Sequence[LogEntity]) -> LogEntity | None:
        """Return the log for *run*, or None when nothing qualifies.

        A log id referenced by any test result wins outright; otherwise the
        run's start time selects among *candidates*.
        """
        explicit = run.explicit_log_id
        if explicit:
            match = next((e for e in candidates if e.id == explicit), None)
            return match or LogEntity(id=explicit)

        started = parse_timestamp(run.start_time)
        if started is None:
            log.debug("correlation_no_start_time", run_id=run.run_id)
            return None

        selected = self.select(started, candidates)
        if selected is None:
            log.info("correlation_miss", run_id=run.run_id, candidates=len(candidates))
        return selected
