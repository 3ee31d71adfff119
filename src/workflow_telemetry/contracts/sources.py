# src/workflow_telemetry/contracts/sources.py
"""Protocol for the workflow-run data source.

The reconstruction pipeline only depends on this capability interface;
the GitHub REST adapter is one implementation, test fakes are others.
"""

from typing import Protocol, runtime_checkable

from workflow_telemetry.contracts.records import ArtifactInfo, RawJob


@runtime_checkable
class RunDataSourceProtocol(Protocol):
    """Read-only access to a workflow run's remote state.

    Error handling:
        - list_jobs() MUST raise on transport/auth failure
        - list_artifacts() MUST NOT raise; failures yield []
        - get_repository_size() and get_job_logs() MUST NOT raise;
          failures yield None
    """

    def list_jobs(self, owner: str, repo: str, run_id: int) -> list[RawJob]:
        """Return every job of the run, in API order."""
        ...

    def list_artifacts(self, owner: str, repo: str, run_id: int) -> list[ArtifactInfo]:
        """Return the run's artifacts (possibly empty while the run is live)."""
        ...

    def get_repository_size(self, owner: str, repo: str) -> int | None:
        """Return the repository size in kilobytes, or None if unavailable."""
        ...

    def get_job_logs(self, owner: str, repo: str, job_id: int) -> str | None:
        """Return the raw text log of one job, or None if unavailable."""
        ...
