# src/workflow_telemetry/__init__.py
"""
workflow-telemetry: CI workflow job telemetry exporter.

Runs as a post-job hook, reconstructs the job/step timeline from the
workflow-run API and emits it as metrics, traces and logs.
"""

__version__ = "0.1.0"
