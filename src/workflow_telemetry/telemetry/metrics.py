# src/workflow_telemetry/telemetry/metrics.py
"""Metric emission: maps a MetricsRecord onto named instruments.

Instrument names follow "<prefix>.<job|step|repo|artifact>.<measure>".
Sink errors propagate to the caller.
"""

from __future__ import annotations

import structlog

from workflow_telemetry.contracts.records import MetricsRecord
from workflow_telemetry.core.pricing import estimate_job_cost
from workflow_telemetry.telemetry.attributes import base_attributes, step_attributes
from workflow_telemetry.telemetry.protocols import MetricSinkProtocol

logger = structlog.get_logger(__name__)

DEFAULT_METRIC_PREFIX = "github.actions"


def record_metrics(
    sink: MetricSinkProtocol,
    record: MetricsRecord,
    prefix: str = DEFAULT_METRIC_PREFIX,
) -> int:
    """Record every metric sample the record supports.

    Emits:
        - job duration, always (zero and estimated durations included)
        - one job count
        - step duration for each step with duration_ms > 0 (zero-duration
          steps never ran and would skew percentiles)
        - one step count per step
        - repository size, when known
        - estimated job cost, when the runner has a known price
        - artifact size and count per artifact, when artifacts exist

    Args:
        sink: Metric sink of the active exporter
        record: Canonical record for this invocation
        prefix: Metric name prefix

    Returns:
        Number of samples recorded
    """
    base = base_attributes(record)
    job = record.job
    samples = 0

    job_attributes = {
        **base,
        "job.status": job.status,
        "job.conclusion": job.conclusion,
    }
    sink.create_histogram(
        f"{prefix}.job.duration",
        description="Duration of workflow jobs in milliseconds",
        unit="ms",
    ).record(job.duration_ms, job_attributes)
    sink.create_counter(
        f"{prefix}.job.total",
        description="Total count of workflow jobs by conclusion",
    ).add(1, job_attributes)
    samples += 2
    logger.debug("job_duration_recorded", duration_ms=job.duration_ms, conclusion=job.conclusion)

    step_duration = sink.create_histogram(
        f"{prefix}.step.duration",
        description="Duration of workflow steps in milliseconds",
        unit="ms",
    )
    step_total = sink.create_counter(
        f"{prefix}.step.total",
        description="Total count of workflow steps by conclusion",
    )
    for step in record.steps:
        attributes = step_attributes(base, step)
        if step.duration_ms > 0:
            step_duration.record(step.duration_ms, attributes)
            samples += 1
        step_total.add(1, attributes)
        samples += 1

    if record.repository.size_kb is not None:
        sink.create_gauge(
            f"{prefix}.repo.size",
            description="Repository size in kilobytes",
            unit="KB",
        ).set(record.repository.size_kb, base)
        samples += 1

    cost = estimate_job_cost(record.runner, job.duration_ms)
    if cost is not None:
        sink.create_histogram(
            f"{prefix}.job.estimated_cost",
            description="Estimated cost of workflow jobs in USD",
            unit="USD",
        ).record(cost, job_attributes)
        samples += 1
        logger.debug("job_cost_recorded", estimated_cost_usd=cost)
    else:
        logger.debug("job_cost_skipped", runner_os=record.runner.os, labels=list(record.runner.labels))

    if record.artifacts is not None:
        artifact_size = sink.create_histogram(
            f"{prefix}.artifact.size",
            description="Size of workflow artifacts in bytes",
            unit="By",
        )
        artifact_total = sink.create_counter(
            f"{prefix}.artifact.total",
            description="Total count of workflow artifacts",
        )
        for artifact in record.artifacts.artifacts:
            attributes = {**base, "artifact.name": artifact.name}
            artifact_size.record(artifact.size_bytes, attributes)
            artifact_total.add(1, attributes)
            samples += 2

    logger.info("metrics_recorded", samples=samples, steps=len(record.steps))
    return samples
