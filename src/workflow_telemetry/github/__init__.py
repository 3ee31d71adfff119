# src/workflow_telemetry/github/__init__.py
"""GitHub REST adapter for workflow-run data."""

from workflow_telemetry.github.client import GitHubRunDataSource

__all__ = ["GitHubRunDataSource"]
