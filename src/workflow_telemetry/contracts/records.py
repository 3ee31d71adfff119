# src/workflow_telemetry/contracts/records.py
"""Record types flowing through the reconstruction pipeline.

Raw records come straight from the workflow-run API and keep its string
timestamps. Normalized and resolved records carry parsed, timezone-aware
datetimes and computed durations. MetricsRecord is the single canonical
output of reconstruction and the only input to every emission path.

All records are frozen and use tuples for sequences: once built, nothing
downstream can mutate them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class RawStep:
    """A step as returned by the job listing."""

    name: str
    number: int
    status: str
    conclusion: str | None = None
    started_at: str | None = None
    completed_at: str | None = None


@dataclass(frozen=True, slots=True)
class RawJob:
    """A job as returned by the job listing.

    Attributes:
        runner_name: Name of the runner the API says picked up this job.
            Used to tell concurrent matrix legs apart.
        labels: Runner labels requested by the job (first is the primary).
    """

    id: int
    name: str
    status: str
    conclusion: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    steps: tuple[RawStep, ...] = ()
    runner_name: str | None = None
    labels: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NormalizedStep:
    """A step with parsed timestamps and a computed duration.

    duration_ms is max(0, completed_at - started_at) when both timestamps
    are present, else 0. conclusion None means "not finished yet", which
    is different from the literal "unknown".
    """

    name: str
    number: int
    status: str
    conclusion: str | None
    started_at: datetime | None
    completed_at: datetime | None
    duration_ms: int


@dataclass(frozen=True, slots=True)
class ResolvedJob:
    """The invoking job after timestamp defaulting and conclusion inference.

    started_at/completed_at are never None: missing values are replaced by
    the current instant, so duration_ms may be an estimate for jobs the API
    has not finalized yet.
    """

    id: int
    name: str
    status: str
    conclusion: str
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    steps: tuple[NormalizedStep, ...] = ()
    labels: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    owner: str
    name: str
    full_name: str
    size_kb: int | None = None


@dataclass(frozen=True, slots=True)
class RunInfo:
    id: int
    number: int
    attempt: int = 1


@dataclass(frozen=True, slots=True)
class GitInfo:
    sha: str
    ref: str
    ref_name: str | None = None
    base_ref: str | None = None
    head_ref: str | None = None


@dataclass(frozen=True, slots=True)
class EventInfo:
    name: str
    actor: str
    pr_number: int | None = None


@dataclass(frozen=True, slots=True)
class RunnerInfo:
    os: str
    arch: str
    name: str | None = None
    labels: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ArtifactInfo:
    """An artifact as returned by the artifact listing."""

    name: str
    size_bytes: int
    expired: bool = False
    created_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ArtifactEntry:
    name: str
    size_bytes: int


@dataclass(frozen=True, slots=True)
class ArtifactSummary:
    """Artifact totals plus per-artifact entries for size metrics."""

    count: int
    total_bytes: int
    artifacts: tuple[ArtifactEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class LogLine:
    """One line of a job log, attributed to a step when possible."""

    timestamp: datetime
    message: str
    step: str | None = None


@dataclass(frozen=True, slots=True)
class MetricsRecord:
    """Canonical collected-metrics record for one invocation.

    Built once, never mutated, discarded after emission.
    """

    workflow: str
    job: ResolvedJob
    repository: RepositoryInfo
    run: RunInfo
    git: GitInfo
    event: EventInfo
    runner: RunnerInfo
    steps: tuple[NormalizedStep, ...] = ()
    artifacts: ArtifactSummary | None = None
    custom_attributes: tuple[tuple[str, str], ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (datetimes as ISO 8601 strings)."""
        return _jsonify(asdict(self))


def _jsonify(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonify(v) for v in value]
    return value
