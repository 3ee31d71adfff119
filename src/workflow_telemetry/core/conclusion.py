# src/workflow_telemetry/core/conclusion.py
"""Conclusion inference for jobs the API has not finalized yet.

The exporter runs as a post-job hook, before the API records the job's
own conclusion. The conclusion is therefore reconstructed from the steps
that have finished. Priority: failure > cancelled > success > unknown.
"""

from __future__ import annotations

from collections.abc import Iterable

from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.enums import Conclusion
from workflow_telemetry.contracts.records import NormalizedStep

_SUCCESSFUL = frozenset({Conclusion.SUCCESS.value, Conclusion.SKIPPED.value})


def infer_conclusion(
    job_conclusion: str | None,
    steps: Iterable[NormalizedStep],
    *,
    diagnostics: DiagnosticLog | None = None,
) -> str:
    """Return a non-null conclusion for a job.

    A present conclusion other than "unknown" is returned unchanged without
    looking at steps. Otherwise only steps with a non-null conclusion are
    considered: steps still pending (e.g. post-action steps of this very
    hook) must not poison the result.

    Args:
        job_conclusion: The job's conclusion as reported by the API
        steps: Normalized steps of the job
        diagnostics: Optional sink for advisory diagnostics

    Returns:
        The original conclusion, or one of failure/cancelled/success/unknown
    """
    if job_conclusion and job_conclusion != Conclusion.UNKNOWN:
        return job_conclusion

    diag = diagnostics if diagnostics is not None else DiagnosticLog()
    finished = [step.conclusion for step in steps if step.conclusion is not None]

    if Conclusion.FAILURE in finished:
        diag.debug("conclusion_inferred", conclusion="failure", reason="failed_step")
        return Conclusion.FAILURE.value
    if Conclusion.CANCELLED in finished:
        diag.debug("conclusion_inferred", conclusion="cancelled", reason="cancelled_step")
        return Conclusion.CANCELLED.value
    if finished and all(conclusion in _SUCCESSFUL for conclusion in finished):
        diag.debug("conclusion_inferred", conclusion="success", completed_steps=len(finished))
        return Conclusion.SUCCESS.value

    diag.debug("conclusion_not_inferred", completed_steps=len(finished))
    return Conclusion.UNKNOWN.value
