# src/workflow_telemetry/core/resolver.py
"""Job resolution: find the job record for the job that is running us.

The runner only tells a job its declared name. For matrix jobs that name
is the unparameterized base ("build") shared by every leg, while the API
lists each leg as "build (ubuntu, 3.12)". Every leg runs the exporter
independently against the same job list, so each one has to filter down
to its own leg without any coordination.

Fallback chain (first match wins):
    1. Exact name match
    2. Exactly one "<base> (<params>)" match
    3. Several matrix matches: runner identity, then in_progress status,
       then most recent start
    4. No name match at all: first job of the run
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.enums import JobStatus
from workflow_telemetry.contracts.errors import NoJobsFoundError
from workflow_telemetry.contracts.records import RawJob
from workflow_telemetry.core.timestamps import parse_timestamp

_EPOCH = datetime.fromtimestamp(0, tz=UTC)


def is_matrix_leg(job_name: str, base_name: str) -> bool:
    """True if job_name is "<base_name> (<params>)"."""
    prefix = f"{base_name} ("
    return job_name.startswith(prefix) and job_name.endswith(")") and len(job_name) > len(prefix) + 1


def resolve_job(
    jobs: Sequence[RawJob],
    job_base_name: str,
    runner_identity: str | None = None,
    *,
    diagnostics: DiagnosticLog | None = None,
    run_id: int | None = None,
) -> RawJob:
    """Return the job record that corresponds to the invoking job.

    Args:
        jobs: Every job of the run, in API order
        job_base_name: The invoking job's declared (base) name
        runner_identity: Name of the runner executing this process
        diagnostics: Optional sink for advisory diagnostics
        run_id: Run id, only used in the NoJobsFoundError message

    Returns:
        Exactly one job from ``jobs``

    Raises:
        NoJobsFoundError: If ``jobs`` is empty
    """
    diag = diagnostics if diagnostics is not None else DiagnosticLog()

    if not jobs:
        raise NoJobsFoundError(run_id)

    for job in jobs:
        if job.name == job_base_name:
            diag.debug("job_exact_match", job_name=job.name, job_id=job.id)
            return job

    matrix_jobs = [job for job in jobs if is_matrix_leg(job.name, job_base_name)]

    if len(matrix_jobs) == 1:
        job = matrix_jobs[0]
        diag.info("matrix_job_matched", job_name=job.name, base_name=job_base_name)
        return job

    if matrix_jobs:
        return _disambiguate_matrix_legs(matrix_jobs, job_base_name, runner_identity, diag)

    fallback = jobs[0]
    diag.warning(
        "job_not_found_using_first",
        base_name=job_base_name,
        job_name=fallback.name,
        job_count=len(jobs),
    )
    return fallback


def _disambiguate_matrix_legs(
    matrix_jobs: list[RawJob],
    job_base_name: str,
    runner_identity: str | None,
    diag: DiagnosticLog,
) -> RawJob:
    if runner_identity:
        for job in matrix_jobs:
            if job.runner_name == runner_identity:
                diag.info(
                    "matrix_job_matched_by_runner",
                    job_name=job.name,
                    runner=runner_identity,
                )
                return job
        diag.debug(
            "matrix_runner_not_matched",
            runner=runner_identity,
            available=[job.runner_name for job in matrix_jobs],
        )
    else:
        diag.debug("matrix_runner_identity_missing", base_name=job_base_name)

    for job in matrix_jobs:
        if job.status == JobStatus.IN_PROGRESS:
            diag.warning(
                "matrix_job_ambiguous_using_in_progress",
                job_name=job.name,
                base_name=job_base_name,
                candidates=len(matrix_jobs),
            )
            return job

    # sorted() is stable under reverse=True, so ties keep API order
    most_recent = sorted(matrix_jobs, key=_start_key, reverse=True)[0]
    diag.warning(
        "matrix_job_ambiguous_using_most_recent",
        job_name=most_recent.name,
        base_name=job_base_name,
        candidates=len(matrix_jobs),
    )
    return most_recent


def _start_key(job: RawJob) -> datetime:
    return parse_timestamp(job.started_at) or _EPOCH
