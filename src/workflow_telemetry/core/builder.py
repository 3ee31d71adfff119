# src/workflow_telemetry/core/builder.py
"""Assembly of the canonical MetricsRecord.

Combines the resolved job, its normalized steps and the invocation context
into one immutable record. Also hosts the small derivations the record
needs: timestamp defaulting, workflow-name resolution, PR-number
extraction and the artifact summary.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from workflow_telemetry.contracts.context import InvocationContext
from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.enums import JobStatus
from workflow_telemetry.contracts.records import (
    ArtifactEntry,
    ArtifactInfo,
    ArtifactSummary,
    EventInfo,
    GitInfo,
    MetricsRecord,
    NormalizedStep,
    RawJob,
    RepositoryInfo,
    ResolvedJob,
    RunInfo,
    RunnerInfo,
)
from workflow_telemetry.core.conclusion import infer_conclusion
from workflow_telemetry.core.timestamps import elapsed_ms, parse_timestamp

# owner/repo/path/to/workflow.yml@ref -> path/to/workflow.yml
_WORKFLOW_REF_PATTERN = re.compile(r"^[^/]+/[^/]+/(.+)@")
_PULL_REF_PATTERN = re.compile(r"refs/pull/(\d+)/merge")


def resolve_job_timing(
    job: RawJob,
    now: datetime,
    *,
    diagnostics: DiagnosticLog | None = None,
) -> tuple[datetime, datetime, int]:
    """Return (started_at, completed_at, duration_ms) with missing instants defaulted to now.

    The exporter runs before the API records job completion, so
    completed_at is usually missing and the duration is an estimate.
    Malformed timestamps count as missing.
    """
    started_at = parse_timestamp(job.started_at)
    completed_at = parse_timestamp(job.completed_at)

    if started_at is None:
        if diagnostics is not None:
            diagnostics.debug("job_start_missing_defaulted", job_id=job.id)
        started_at = now
    estimated = completed_at is None
    if completed_at is None:
        completed_at = now

    duration_ms = elapsed_ms(started_at, completed_at)
    if estimated and diagnostics is not None:
        diagnostics.debug("job_duration_estimated", job_id=job.id, duration_ms=duration_ms)
    return started_at, completed_at, duration_ms


def finalize_job(
    job: RawJob,
    steps: Sequence[NormalizedStep],
    *,
    now: datetime | None = None,
    diagnostics: DiagnosticLog | None = None,
) -> ResolvedJob:
    """Apply timestamp defaulting and conclusion inference to a raw job."""
    current = now if now is not None else datetime.now(UTC)
    started_at, completed_at, duration_ms = resolve_job_timing(job, current, diagnostics=diagnostics)
    return ResolvedJob(
        id=job.id,
        name=job.name,
        status=job.status or JobStatus.IN_PROGRESS.value,
        conclusion=infer_conclusion(job.conclusion, steps, diagnostics=diagnostics),
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=duration_ms,
        steps=tuple(steps),
        labels=job.labels,
    )


def extract_workflow_path(workflow_ref: str | None) -> str | None:
    """Extract "path/to/workflow.yml" from "owner/repo/path/to/workflow.yml@ref"."""
    if not workflow_ref:
        return None
    match = _WORKFLOW_REF_PATTERN.match(workflow_ref)
    if match:
        return match.group(1)
    return None


def resolve_workflow_name(workflow: str | None, workflow_ref: str | None) -> str:
    """Explicit name, else the path parsed from the ref, else the raw ref."""
    if workflow:
        return workflow
    path = extract_workflow_path(workflow_ref)
    if path is not None:
        return path
    if workflow_ref:
        return workflow_ref
    return "unknown"


def extract_pr_number(payload_pr_number: int | None, ref: str | None) -> int | None:
    """PR number from the event payload, else from a refs/pull/<n>/merge ref."""
    if payload_pr_number is not None:
        return payload_pr_number
    if not ref:
        return None
    match = _PULL_REF_PATTERN.search(ref)
    if match:
        return int(match.group(1))
    return None


def summarize_artifacts(artifacts: Sequence[ArtifactInfo] | None) -> ArtifactSummary | None:
    """Count and total size of the run's artifacts; None when there are none."""
    if not artifacts:
        return None
    entries = tuple(ArtifactEntry(name=a.name, size_bytes=a.size_bytes) for a in artifacts)
    return ArtifactSummary(
        count=len(entries),
        total_bytes=sum(entry.size_bytes for entry in entries),
        artifacts=entries,
    )


def build_metrics_record(
    job: ResolvedJob,
    context: InvocationContext,
    *,
    repo_size_kb: int | None = None,
    artifacts: Sequence[ArtifactInfo] | None = None,
    custom_attributes: Mapping[str, str] | None = None,
) -> MetricsRecord:
    """Assemble the immutable MetricsRecord for this invocation.

    Args:
        job: Resolved job (timestamps defaulted, conclusion inferred)
        context: Invocation context built at the process boundary
        repo_size_kb: Repository size, if it could be fetched
        artifacts: Artifact listing, if any
        custom_attributes: User-supplied attributes for every sample/span

    Returns:
        The canonical record consumed by every emission path
    """
    return MetricsRecord(
        workflow=resolve_workflow_name(context.workflow, context.workflow_ref),
        job=job,
        steps=job.steps,
        repository=RepositoryInfo(
            owner=context.owner,
            name=context.repo,
            full_name=context.full_name,
            size_kb=repo_size_kb,
        ),
        run=RunInfo(
            id=context.run_id,
            number=context.run_number,
            attempt=context.run_attempt,
        ),
        git=GitInfo(
            sha=context.sha,
            ref=context.ref,
            ref_name=context.ref_name,
            base_ref=context.base_ref,
            head_ref=context.head_ref,
        ),
        event=EventInfo(
            name=context.event_name,
            actor=context.actor,
            pr_number=extract_pr_number(context.pr_number, context.ref),
        ),
        runner=RunnerInfo(
            os=context.runner_os,
            arch=context.runner_arch,
            name=context.runner_name,
            labels=job.labels,
        ),
        artifacts=summarize_artifacts(artifacts),
        custom_attributes=tuple(sorted((custom_attributes or {}).items())),
    )
