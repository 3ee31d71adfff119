# src/workflow_telemetry/core/job_logs.py
"""Parsing of raw job logs into timestamped, step-attributed lines.

Job logs are plain text, one "<RFC 3339 timestamp> <message>" per line.
Steps are not marked reliably in the text, so each line is attributed to
the step whose execution window contains its timestamp.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from workflow_telemetry.contracts.enums import LogSeverity
from workflow_telemetry.contracts.records import LogLine, NormalizedStep
from workflow_telemetry.core.timestamps import parse_timestamp

_ERROR_MARKERS = ("##[error]", "::error::", "ERROR")
_WARNING_MARKERS = ("##[warning]", "::warning::", "WARNING")
_DEBUG_MARKERS = ("##[debug]", "::debug::")


def classify_severity(message: str) -> LogSeverity:
    """Severity of a log message from workflow-command markers and keywords."""
    if any(marker in message for marker in _ERROR_MARKERS):
        return LogSeverity.ERROR
    if any(marker in message for marker in _WARNING_MARKERS):
        return LogSeverity.WARNING
    if any(marker in message for marker in _DEBUG_MARKERS):
        return LogSeverity.DEBUG
    return LogSeverity.INFO


def attribute_step(timestamp: datetime, steps: Sequence[NormalizedStep]) -> str | None:
    for step in steps:
        if step.started_at is None or step.completed_at is None:
            continue
        if step.started_at <= timestamp <= step.completed_at:
            return step.name
    return None


def parse_job_log(text: str, steps: Sequence[NormalizedStep] = ()) -> list[LogLine]:
    """Split a raw job log into LogLines.

    Lines without a leading timestamp continue the previous line's message;
    if there is no previous line they are dropped.
    """
    lines: list[LogLine] = []
    for raw_line in text.lstrip("\ufeff").splitlines():
        if not raw_line.strip():
            continue
        head, _, message = raw_line.partition(" ")
        timestamp = parse_timestamp(head)
        if timestamp is None:
            if lines:
                previous = lines[-1]
                lines[-1] = LogLine(
                    timestamp=previous.timestamp,
                    message=f"{previous.message}\n{raw_line}",
                    step=previous.step,
                )
            continue
        lines.append(LogLine(timestamp=timestamp, message=message, step=attribute_step(timestamp, steps)))
    return lines
