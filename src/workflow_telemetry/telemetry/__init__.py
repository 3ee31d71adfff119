# src/workflow_telemetry/telemetry/__init__.py
"""Telemetry emission and backends.

Emission maps a MetricsRecord onto the sink protocols:
- metrics.record_metrics: histograms, counters and gauges
- traces.record_traces: job span with step child spans
- logs.record_logs: job-log lines or summary entries

Exporters bundle the three sinks for one backend and are discovered via
pluggy hooks (see hookspecs and factory).
"""

from workflow_telemetry.telemetry.errors import TelemetryExporterError
from workflow_telemetry.telemetry.factory import create_exporter, discover_exporter_registry
from workflow_telemetry.telemetry.logs import LogEntry, record_logs
from workflow_telemetry.telemetry.metrics import record_metrics
from workflow_telemetry.telemetry.protocols import (
    ExporterProtocol,
    LogSinkProtocol,
    MetricSinkProtocol,
    TraceSinkProtocol,
)
from workflow_telemetry.telemetry.traces import record_traces

__all__ = [
    "ExporterProtocol",
    "LogEntry",
    "LogSinkProtocol",
    "MetricSinkProtocol",
    "TelemetryExporterError",
    "TraceSinkProtocol",
    "create_exporter",
    "discover_exporter_registry",
    "record_logs",
    "record_metrics",
    "record_traces",
]
