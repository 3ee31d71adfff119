# src/workflow_telemetry/contracts/errors.py
"""Exceptions raised by the reconstruction pipeline and its collaborators.

Data-shape problems (bad dates, missing optional fields) never raise; they
are recovered locally with a defined default. Only the conditions below
escape the pipeline.
"""


class NoJobsFoundError(Exception):
    """Raised when the run has no jobs, so there is nothing to report on."""

    def __init__(self, run_id: int | None = None) -> None:
        self.run_id = run_id
        if run_id is None:
            super().__init__("No jobs found for this workflow run")
        else:
            super().__init__(f"No jobs found for workflow run {run_id}")


class InvocationContextError(Exception):
    """Raised when the process environment lacks required run identity."""


class RunDataError(Exception):
    """Raised when the run-data source cannot be read (transport or auth).

    Attributes:
        operation: Which source operation failed (e.g. "list_jobs")
        status_code: HTTP status when the failure was an HTTP error response
    """

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")
