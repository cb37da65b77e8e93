"""Large-payload log fetcher.

Log bodies can be far larger than a comfortable pipe buffer, so the body is
first fetched by letting the CLI redirect its own stdout into a temporary
file. Only if that fails are the JSON envelope and the raw stdout tried,
each in both dialects.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Callable
from pathlib import Path

import structlog

from logbridge.cache.store import now_ms
from logbridge.core.errors import LogFetchError, MalformedResponseError
from logbridge.logs.models import LogEntity, sanitize_filename
from logbridge.tool.fallback import FunctionStrategy, StrategiesExhaustedError, first_success
from logbridge.tool.gateway import CliGateway
from logbridge.tool.models import Dialect, Operation
from logbridge.tool.response import extract_text, parse_envelope

log = structlog.get_logger(__name__)


class LogFetcher:
    """Fetch debug log bodies through the redirect, envelope and raw strategies."""

    def __init__(
        self,
        gateway: CliGateway,
        *,
        temp_dir: Path | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._gateway = gateway
        self._temp_dir = temp_dir
        self._clock = clock

    def temp_path(self, log_id: str) -> Path:
        """Unique temporary file for one fetch of *log_id*."""
        directory = self._temp_dir or Path(tempfile.gettempdir())
        prefix = self._gateway.config.temp_prefix
        return directory / f"{prefix}_{sanitize_filename(log_id)}_{self._clock()}.log"

    def strategies(self, log_id: str, target_org: str | None) -> list[FunctionStrategy[str]]:
        """The ordered fetch strategies for *log_id*."""
        dialects = [Dialect.MODERN, Dialect.LEGACY]
        return [
            *(
                FunctionStrategy(f"redirect/{d.value}", self._redirect_fn(d, log_id, target_org))
                for d in dialects
            ),
            *(
                FunctionStrategy(f"envelope/{d.value}", self._envelope_fn(d, log_id, target_org))
                for d in dialects
            ),
            *(
                FunctionStrategy(f"raw/{d.value}", self._raw_fn(d, log_id, target_org))
                for d in dialects
            ),
        ]

    async def fetch(self, log_id: str, target_org: str | None = None) -> str:
        """Return the full body of *log_id*.

        Raises:
            LogFetchError: Every strategy failed.
        """
        try:
            name, body = await first_success(self.strategies(log_id, target_org))
        except StrategiesExhaustedError as e:
            log.warning("log_fetch_exhausted", log_id=log_id, attempts=len(e.attempts))
            raise LogFetchError.exhausted(log_id, e.summary()) from e
        log.debug("log_fetched", log_id=log_id, strategy=name, chars=len(body))
        return body

    async def download(
        self, entry: LogEntity, target_dir: Path, target_org: str | None = None
    ) -> Path:
        """Fetch *entry* and write it into *target_dir*; return the written path."""
        body = await self.fetch(entry.id, target_org)
        path = target_dir / entry.download_filename()
        await asyncio.to_thread(_write_text, path, body)
        log.info("log_downloaded", log_id=entry.id, path=str(path))
        return path

    def _redirect_fn(self, dialect: Dialect, log_id: str, target_org: str | None):
        async def attempt() -> str:
            path = self.temp_path(log_id)
            try:
                await self._gateway.run_in(
                    Operation.GET_LOG,
                    dialect,
                    log_id=log_id,
                    target_org=target_org,
                    output_file=str(path),
                )
                body = await asyncio.to_thread(path.read_text, encoding="utf-8")
            finally:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            if not body.strip():
                raise MalformedResponseError.missing("log body", "redirected output was empty")
            return body

        return attempt

    def _envelope_fn(self, dialect: Dialect, log_id: str, target_org: str | None):
        async def attempt() -> str:
            output = await self._gateway.run_in(
                Operation.GET_LOG, dialect, log_id=log_id, target_org=target_org, json=True
            )
            body = extract_text(parse_envelope(output))
            if body is None:
                raise MalformedResponseError.missing("log body", "no text field in envelope")
            return body

        return attempt

    def _raw_fn(self, dialect: Dialect, log_id: str, target_org: str | None):
        async def attempt() -> str:
            body = await self._gateway.run_in(
                Operation.GET_LOG,
                dialect,
                log_id=log_id,
                target_org=target_org,
                max_buffer=self._gateway.config.large_buffer_bytes,
            )
            if not body.strip():
                raise MalformedResponseError.missing("log body", "output was empty")
            return body

        return attempt


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
