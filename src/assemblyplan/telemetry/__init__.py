"""Structured run telemetry."""

from .jsonl import append_jsonl, read_jsonl
from .run_logger import TELEMETRY_SCHEMA_VERSION, RunTelemetryLogger

__all__ = ["append_jsonl", "read_jsonl", "RunTelemetryLogger", "TELEMETRY_SCHEMA_VERSION"]
