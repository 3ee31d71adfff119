# src/workflow_telemetry/telemetry/logs.py
"""Log emission: job logs or summary entries, written in batches.

With parsed job-log lines, every line becomes an entry. Without them the
job and each step get one summary entry.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from workflow_telemetry.contracts.enums import Conclusion, LogSeverity
from workflow_telemetry.contracts.records import LogLine, MetricsRecord, NormalizedStep
from workflow_telemetry.core.job_logs import classify_severity
from workflow_telemetry.telemetry.protocols import LogSinkProtocol

logger = structlog.get_logger(__name__)

LOG_BATCH_SIZE = 100


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One structured log entry.

    Attributes:
        labels: Flat string labels for filtering
        payload: Structured body; always carries "message"
        resource_labels: Identity of the task that produced the entry, for
            backends with a monitored-resource model
    """

    timestamp: datetime
    severity: LogSeverity
    payload: dict[str, Any]
    labels: dict[str, str] = field(default_factory=dict)
    resource_labels: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return str(self.payload["message"])


def base_labels(record: MetricsRecord) -> dict[str, str]:
    return {
        "workflow": record.workflow,
        "repository": record.repository.full_name,
        "run_number": str(record.run.number),
        "run_attempt": str(record.run.attempt),
        "job_name": record.job.name,
    }


def resource_labels(record: MetricsRecord) -> dict[str, str]:
    return {
        "project_id": record.repository.owner,
        "location": "global",
        "namespace": record.repository.name,
        "job": record.job.name,
        "task_id": str(record.run.id),
    }


def _step_severity(step: NormalizedStep) -> LogSeverity:
    if step.conclusion == Conclusion.SUCCESS.value:
        return LogSeverity.INFO
    if step.conclusion == Conclusion.FAILURE.value:
        return LogSeverity.ERROR
    return LogSeverity.WARNING


def line_entries(record: MetricsRecord, log_lines: Sequence[LogLine]) -> list[LogEntry]:
    labels = base_labels(record)
    resource = resource_labels(record)
    return [
        LogEntry(
            timestamp=line.timestamp,
            severity=classify_severity(line.message),
            payload={"message": line.message, "step": line.step},
            labels={**labels, "step": line.step or Conclusion.UNKNOWN.value},
            resource_labels=resource,
        )
        for line in log_lines
    ]


def summary_entries(record: MetricsRecord) -> list[LogEntry]:
    labels = base_labels(record)
    resource = resource_labels(record)
    job = record.job
    entries = [
        LogEntry(
            timestamp=job.completed_at,
            severity=LogSeverity.INFO if job.conclusion == Conclusion.SUCCESS.value else LogSeverity.ERROR,
            payload={
                "message": f"Job {job.name} {job.conclusion}",
                "job": {
                    "name": job.name,
                    "id": job.id,
                    "status": job.status,
                    "conclusion": job.conclusion,
                    "duration_ms": job.duration_ms,
                },
            },
            labels=labels,
            resource_labels=resource,
        )
    ]
    for step in record.steps:
        entries.append(
            LogEntry(
                timestamp=step.completed_at or job.completed_at,
                severity=_step_severity(step),
                payload={
                    "message": f'Step "{step.name}" {step.conclusion or Conclusion.UNKNOWN.value}',
                    "step": {
                        "name": step.name,
                        "number": step.number,
                        "conclusion": step.conclusion,
                        "duration_ms": step.duration_ms,
                    },
                },
                labels={**labels, "step_name": step.name, "step_number": str(step.number)},
                resource_labels=resource,
            )
        )
    return entries


def record_logs(
    sink: LogSinkProtocol,
    record: MetricsRecord,
    log_lines: Sequence[LogLine] = (),
) -> int:
    """Write log entries for the job in batches of LOG_BATCH_SIZE.

    Returns:
        Number of entries written
    """
    if log_lines:
        entries = line_entries(record, log_lines)
        logger.info("writing_detailed_logs", lines=len(entries))
    else:
        entries = summary_entries(record)
        logger.info("writing_summary_logs", entries=len(entries))

    for start in range(0, len(entries), LOG_BATCH_SIZE):
        batch = entries[start : start + LOG_BATCH_SIZE]
        sink.write(batch)
        logger.debug("log_batch_written", size=len(batch))
    return len(entries)
