# src/workflow_telemetry/engine/orchestrator.py
"""Export orchestration: collect, emit, flush, close, apply the failure policy.

Emission paths share nothing but the record, so a disabled path simply
does not run. Whatever happens the exporter is closed exactly once.

Failure policy:
    fail_on_error=False (default): telemetry is best-effort. Any error is
        logged, and the outcome reports it; the workflow job is unaffected.
    fail_on_error=True: the error propagates after the exporter is closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog

from workflow_telemetry.contracts.context import InvocationContext
from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.records import MetricsRecord
from workflow_telemetry.contracts.sources import RunDataSourceProtocol
from workflow_telemetry.core.config import TelemetrySettings
from workflow_telemetry.engine.collector import collect_log_lines, collect_metrics
from workflow_telemetry.telemetry.logs import record_logs
from workflow_telemetry.telemetry.metrics import record_metrics
from workflow_telemetry.telemetry.protocols import ExporterProtocol
from workflow_telemetry.telemetry.traces import record_traces

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExportOutcome:
    """Result of one export run.

    Attributes:
        succeeded: True when collection and every enabled emission path completed
        record: The collected record, or None if collection failed
        error: "<ExceptionType>: <message>" when something failed
        flushed: True when the exporter acknowledged the final flush
    """

    succeeded: bool
    record: MetricsRecord | None = None
    error: str | None = None
    flushed: bool = False


def export_run(
    settings: TelemetrySettings,
    context: InvocationContext,
    source: RunDataSourceProtocol,
    exporter: ExporterProtocol,
    *,
    now: datetime | None = None,
) -> ExportOutcome:
    """Collect the record for the invoking job and export it.

    Args:
        settings: Validated settings
        context: Invocation context built at the process boundary
        source: Run-data source
        exporter: Configured exporter; closed before returning
        now: Instant used for missing job timestamps (tests inject this)

    Returns:
        ExportOutcome describing what happened

    Raises:
        Exception: Only with settings.fail_on_error, re-raising the original
            failure after the exporter is closed
    """
    diagnostics = DiagnosticLog()
    record: MetricsRecord | None = None
    flushed = False

    try:
        try:
            record = collect_metrics(
                source,
                context,
                include_artifacts=settings.artifacts_enabled,
                custom_attributes=settings.custom_attributes,
                diagnostics=diagnostics,
                now=now,
            )
        finally:
            diagnostics.emit(logger)

        if settings.metrics_enabled:
            record_metrics(exporter.metrics, record, settings.metric_prefix)
        if settings.traces_enabled:
            record_traces(exporter.traces, record)
        if settings.logs_enabled:
            log_lines = collect_log_lines(source, context, record) if settings.detailed_logs else []
            record_logs(exporter.logs, record, log_lines)

        flushed = exporter.flush()
    except Exception as e:
        error = f"{type(e).__name__}: {e}"
        logger.error(
            "telemetry_export_failed",
            error=error,
            exporter=exporter.name,
            fail_on_error=settings.fail_on_error,
        )
        _close(exporter)
        if settings.fail_on_error:
            raise
        return ExportOutcome(succeeded=False, record=record, error=error, flushed=flushed)

    _close(exporter)
    logger.info(
        "telemetry_exported",
        exporter=exporter.name,
        job_name=record.job.name,
        conclusion=record.job.conclusion,
        flushed=flushed,
    )
    return ExportOutcome(succeeded=True, record=record, flushed=flushed)


def _close(exporter: ExporterProtocol) -> None:
    try:
        exporter.close()
    except Exception as e:
        logger.warning("exporter_close_failed", exporter=exporter.name, error=str(e))
