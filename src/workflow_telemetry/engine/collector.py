# src/workflow_telemetry/engine/collector.py
"""Collection: pull run data from the source and reconstruct the MetricsRecord.

Calls run sequentially, since each stage consumes the previous one's
output. Only a failed job listing (or an empty one) stops collection;
repository size, artifacts and job logs degrade to "not available".
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

import structlog

from workflow_telemetry.contracts.context import InvocationContext
from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.records import LogLine, MetricsRecord
from workflow_telemetry.contracts.sources import RunDataSourceProtocol
from workflow_telemetry.core.builder import build_metrics_record, finalize_job
from workflow_telemetry.core.job_logs import parse_job_log
from workflow_telemetry.core.resolver import resolve_job
from workflow_telemetry.core.steps import normalize_steps

logger = structlog.get_logger(__name__)


def collect_metrics(
    source: RunDataSourceProtocol,
    context: InvocationContext,
    *,
    include_artifacts: bool = True,
    custom_attributes: Mapping[str, str] | None = None,
    diagnostics: DiagnosticLog | None = None,
    now: datetime | None = None,
) -> MetricsRecord:
    """Reconstruct the MetricsRecord for the invoking job.

    Args:
        source: Run-data source (the GitHub adapter in production)
        context: Invocation context built at the process boundary
        include_artifacts: List run artifacts for the artifact summary
        custom_attributes: User-supplied attributes stored on the record
        diagnostics: Collects advisory diagnostics from the pure stages
        now: Instant used for missing job timestamps (defaults to current time)

    Returns:
        The immutable MetricsRecord

    Raises:
        NoJobsFoundError: If the run has no jobs
        RunDataError: If the job listing fails
    """
    diag = diagnostics if diagnostics is not None else DiagnosticLog()
    current = now if now is not None else datetime.now(UTC)

    jobs = source.list_jobs(context.owner, context.repo, context.run_id)
    logger.debug("jobs_fetched", run_id=context.run_id, count=len(jobs))

    raw_job = resolve_job(
        jobs,
        context.job_base_name,
        context.runner_identity,
        diagnostics=diag,
        run_id=context.run_id,
    )
    steps = normalize_steps(raw_job.steps)
    job = finalize_job(raw_job, steps, now=current, diagnostics=diag)
    logger.info(
        "job_resolved",
        job_name=job.name,
        job_id=job.id,
        conclusion=job.conclusion,
        duration_ms=job.duration_ms,
        steps=len(steps),
    )

    repo_size_kb = source.get_repository_size(context.owner, context.repo)

    artifacts = None
    if include_artifacts:
        artifacts = source.list_artifacts(context.owner, context.repo, context.run_id)

    return build_metrics_record(
        job,
        context,
        repo_size_kb=repo_size_kb,
        artifacts=artifacts,
        custom_attributes=custom_attributes,
    )


def collect_log_lines(
    source: RunDataSourceProtocol,
    context: InvocationContext,
    record: MetricsRecord,
) -> list[LogLine]:
    """Download and parse the resolved job's log; [] when unavailable."""
    text = source.get_job_logs(context.owner, context.repo, record.job.id)
    if not text:
        logger.info("job_logs_unavailable", job_id=record.job.id)
        return []
    lines = parse_job_log(text, record.steps)
    logger.debug("job_logs_parsed", job_id=record.job.id, lines=len(lines))
    return lines
