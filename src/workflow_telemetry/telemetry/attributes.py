# src/workflow_telemetry/telemetry/attributes.py
"""Attribute sets attached to every metric sample, span and log entry."""

from __future__ import annotations

from workflow_telemetry.contracts.enums import Conclusion
from workflow_telemetry.contracts.records import MetricsRecord, NormalizedStep


def base_attributes(record: MetricsRecord) -> dict[str, str]:
    """Workflow, job, repository, run, git, event and runner identity.

    Values are strings. Optional values that are absent are left out
    rather than emitted as null. Custom attributes are added last and never
    replace a built-in key.
    """
    attributes: dict[str, str] = {
        "workflow.name": record.workflow,
        "job.name": record.job.name,
        "job.id": str(record.job.id),
        "repository.owner": record.repository.owner,
        "repository.name": record.repository.name,
        "repository.full_name": record.repository.full_name,
        "run.id": str(record.run.id),
        "run.number": str(record.run.number),
        "run.attempt": str(record.run.attempt),
        "git.sha": record.git.sha,
        "git.ref": record.git.ref,
        "event.name": record.event.name,
        "event.actor": record.event.actor,
        "runner.os": record.runner.os,
        "runner.arch": record.runner.arch,
    }
    optional = {
        "git.ref_name": record.git.ref_name,
        "git.base_ref": record.git.base_ref,
        "git.head_ref": record.git.head_ref,
        "event.pr_number": None if record.event.pr_number is None else str(record.event.pr_number),
        "runner.name": record.runner.name,
        "runner.labels": ",".join(record.runner.labels) or None,
    }
    attributes.update({key: value for key, value in optional.items() if value is not None})

    for key, value in record.custom_attributes:
        attributes.setdefault(key, value)
    return attributes


def step_attributes(base: dict[str, str], step: NormalizedStep) -> dict[str, str]:
    return {
        **base,
        "step.name": step.name,
        "step.number": str(step.number),
        "step.status": step.status,
        "step.conclusion": step.conclusion or Conclusion.UNKNOWN.value,
    }
