"""Context manager recording one telemetry line per assignment run."""

from __future__ import annotations

import time
from collections.abc import Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from .jsonl import append_jsonl

TELEMETRY_SCHEMA_VERSION = "1.0"


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(slots=True)
class RunTelemetryLogger(AbstractContextManager["RunTelemetryLogger"]):
    """Record a single ``run`` line for a CLI command.

    Parameters
    ----------
    log_path:
        JSONL file the run record is appended to.
    command:
        Command that produced the run (``"assign"``, ``"seat"``...).
    session:
        Session name.
    session_path:
        Path of the session YAML, when loaded from disk.
    seed:
        Random seed, if the command is randomised.
    config:
        Effective configuration (capacity, constraints count...).
    context:
        Free-form metadata about the invocation.

    Leaving the ``with`` block without :meth:`finalize` writes an ``ok`` record with empty
    metrics; an exception writes an ``error`` record and propagates.
    """

    log_path: Path
    command: str
    session: str | None = None
    session_path: str | None = None
    seed: int | None = None
    config: Mapping[str, Any] | None = None
    context: Mapping[str, Any] | None = None
    schema_version: str = TELEMETRY_SCHEMA_VERSION
    run_id: str = field(default_factory=lambda: uuid4().hex, init=False)
    _start_time: float = field(default=0.0, init=False)
    _start_timestamp: str | None = field(default=None, init=False)
    _closed: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.log_path = Path(self.log_path)

    def __enter__(self) -> RunTelemetryLogger:
        self._start_time = time.perf_counter()
        self._start_timestamp = _iso_now()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type:
            self._close(status="error", metrics=None, error=repr(exc))
            return False
        self._close(status="ok", metrics=None, error=None)
        return False

    def elapsed(self) -> float:
        return time.perf_counter() - self._start_time

    def finalize(
        self,
        *,
        status: str = "ok",
        metrics: Mapping[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Write the run record now; later exits are no-ops."""
        self._close(status=status, metrics=metrics, error=error)

    def _close(
        self,
        *,
        status: str,
        metrics: Mapping[str, Any] | None,
        error: str | None,
    ) -> None:
        if self._closed:
            return
        duration = self.elapsed() if self._start_time else 0.0
        record = {
            "record_type": "run",
            "schema_version": self.schema_version,
            "run_id": self.run_id,
            "command": self.command,
            "session": self.session,
            "session_path": self.session_path,
            "seed": self.seed,
            "status": status,
            "metrics": dict(metrics or {}),
            "config": dict(self.config or {}),
            "context": dict(self.context or {}),
            "error": error,
            "started_at": self._start_timestamp,
            "finished_at": _iso_now(),
            "duration_seconds": round(duration, 3),
        }
        append_jsonl(self.log_path, record)
        self._closed = True


__all__ = ["TELEMETRY_SCHEMA_VERSION", "RunTelemetryLogger"]
