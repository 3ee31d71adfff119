# src/workflow_telemetry/telemetry/traces.py
"""Trace emission: one root span for the job, one child span per step.

Child spans are not clamped to the job's window. If upstream timestamps
disagree with the (possibly estimated) job window, the trace shows it.
"""

from __future__ import annotations

from typing import Any

import structlog

from workflow_telemetry.contracts.enums import Conclusion
from workflow_telemetry.contracts.records import MetricsRecord
from workflow_telemetry.telemetry.attributes import base_attributes, step_attributes
from workflow_telemetry.telemetry.protocols import TraceSinkProtocol

logger = structlog.get_logger(__name__)


class StepFailedError(Exception):
    """Synthesized exception recorded on the span of a failed step."""

    def __init__(self, step_name: str) -> None:
        self.step_name = step_name
        super().__init__(f'Step "{step_name}" failed')


def record_traces(sink: TraceSinkProtocol, record: MetricsRecord) -> Any:
    """Emit the job span and its step spans.

    Steps lacking either timestamp get no span. The job span is ended only
    when the job has a completion instant; otherwise the open span is
    returned for the caller to finish.

    Returns:
        The job span handle
    """
    base = base_attributes(record)
    job = record.job

    job_span = sink.start_span(
        f"Job: {job.name}",
        attributes={
            **base,
            "job.status": job.status,
            "job.conclusion": job.conclusion,
        },
        start_time=job.started_at,
    )

    spans = 0
    for step in record.steps:
        if step.started_at is None or step.completed_at is None:
            logger.debug("step_span_skipped", step=step.name, reason="missing timestamp")
            continue
        step_span = sink.start_span(
            f"Step: {step.name}",
            attributes=step_attributes(base, step),
            start_time=step.started_at,
            parent=job_span,
        )
        if step.conclusion == Conclusion.FAILURE.value:
            sink.set_error(step_span, "Step failed")
            sink.record_exception(step_span, StepFailedError(step.name))
        sink.end_span(step_span, step.completed_at)
        spans += 1

    if job.completed_at is not None:
        if job.conclusion == Conclusion.FAILURE.value:
            sink.set_error(job_span, "Job failed")
        sink.end_span(job_span, job.completed_at)

    logger.info("traces_recorded", job=job.name, step_spans=spans)
    return job_span
