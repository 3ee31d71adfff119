# src/workflow_telemetry/core/__init__.py
"""Reconstruction engine: turns noisy run data into one MetricsRecord.

Components, leaf-first:
- steps: step normalization with computed durations
- resolver: which job record is "us" (matrix-leg aware)
- conclusion: conclusion inference for unfinished jobs
- builder: timestamp defaulting and MetricsRecord assembly
- pricing: static per-minute runner price table
- job_logs: raw job log parsing
- config / logging: ambient configuration and structured logging
"""

from workflow_telemetry.core.builder import (
    build_metrics_record,
    extract_pr_number,
    extract_workflow_path,
    finalize_job,
    resolve_job_timing,
    resolve_workflow_name,
    summarize_artifacts,
)
from workflow_telemetry.core.conclusion import infer_conclusion
from workflow_telemetry.core.job_logs import classify_severity, parse_job_log
from workflow_telemetry.core.pricing import estimate_job_cost
from workflow_telemetry.core.resolver import resolve_job
from workflow_telemetry.core.steps import normalize_steps
from workflow_telemetry.core.timestamps import parse_timestamp

__all__ = [
    "build_metrics_record",
    "classify_severity",
    "estimate_job_cost",
    "extract_pr_number",
    "extract_workflow_path",
    "finalize_job",
    "infer_conclusion",
    "normalize_steps",
    "parse_job_log",
    "parse_timestamp",
    "resolve_job",
    "resolve_job_timing",
    "resolve_workflow_name",
    "summarize_artifacts",
]
