# src/workflow_telemetry/engine/__init__.py
"""Collection pipeline and export orchestration."""

from workflow_telemetry.engine.collector import collect_log_lines, collect_metrics
from workflow_telemetry.engine.orchestrator import ExportOutcome, export_run

__all__ = [
    "ExportOutcome",
    "collect_log_lines",
    "collect_metrics",
    "export_run",
]
