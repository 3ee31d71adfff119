# src/workflow_telemetry/contracts/enums.py
"""Status values and kinds shared across subsystem boundaries.

Values mirror the strings the workflow-run API returns so that raw records
can be compared against them without translation.
"""

from enum import StrEnum


class Conclusion(StrEnum):
    """Terminal outcome of a job or step.

    UNKNOWN is a real value, distinct from "no conclusion yet" (None).
    A job's inferred conclusion is always one of SUCCESS, FAILURE,
    CANCELLED or UNKNOWN; steps may additionally be SKIPPED.
    """

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


class JobStatus(StrEnum):
    """Lifecycle status of a job or step as reported by the API."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAITING = "waiting"
    PENDING = "pending"


class LogSeverity(StrEnum):
    """Severity attached to emitted log entries."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
