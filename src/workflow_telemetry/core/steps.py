# src/workflow_telemetry/core/steps.py
"""Step normalization: raw API steps into canonical steps with durations."""

from __future__ import annotations

from collections.abc import Iterable

from workflow_telemetry.contracts.records import NormalizedStep, RawStep
from workflow_telemetry.core.timestamps import elapsed_ms, parse_timestamp


def normalize_step(step: RawStep) -> NormalizedStep:
    started_at = parse_timestamp(step.started_at)
    completed_at = parse_timestamp(step.completed_at)
    return NormalizedStep(
        name=step.name,
        number=step.number,
        status=step.status,
        conclusion=step.conclusion,
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=elapsed_ms(started_at, completed_at),
    )


def normalize_steps(steps: Iterable[RawStep] | None) -> tuple[NormalizedStep, ...]:
    """Normalize raw steps, preserving order.

    Total function: an absent or empty input gives an empty tuple, and a
    step with a missing or malformed timestamp gets duration_ms = 0.
    """
    if steps is None:
        return ()
    return tuple(normalize_step(step) for step in steps)
