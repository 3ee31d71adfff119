# src/workflow_telemetry/contracts/__init__.py
"""Shared contracts: leaf types with no dependencies on other subpackages.

Everything that crosses a subsystem boundary (records, context, errors,
diagnostics, the run-data source protocol) lives here.
"""

from workflow_telemetry.contracts.context import InvocationContext
from workflow_telemetry.contracts.diagnostics import Diagnostic, DiagnosticLog
from workflow_telemetry.contracts.enums import Conclusion, JobStatus, LogSeverity
from workflow_telemetry.contracts.errors import (
    InvocationContextError,
    NoJobsFoundError,
    RunDataError,
)
from workflow_telemetry.contracts.records import (
    ArtifactEntry,
    ArtifactInfo,
    ArtifactSummary,
    EventInfo,
    GitInfo,
    LogLine,
    MetricsRecord,
    NormalizedStep,
    RawJob,
    RawStep,
    RepositoryInfo,
    ResolvedJob,
    RunInfo,
    RunnerInfo,
)
from workflow_telemetry.contracts.sources import RunDataSourceProtocol

__all__ = [
    "ArtifactEntry",
    "ArtifactInfo",
    "ArtifactSummary",
    "Conclusion",
    "Diagnostic",
    "DiagnosticLog",
    "EventInfo",
    "GitInfo",
    "InvocationContext",
    "InvocationContextError",
    "JobStatus",
    "LogLine",
    "LogSeverity",
    "MetricsRecord",
    "NoJobsFoundError",
    "NormalizedStep",
    "RawJob",
    "RawStep",
    "RepositoryInfo",
    "ResolvedJob",
    "RunDataError",
    "RunDataSourceProtocol",
    "RunInfo",
    "RunnerInfo",
]
