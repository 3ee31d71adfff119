# src/workflow_telemetry/telemetry/exporters/__init__.py
"""Built-in telemetry exporters.

Available exporters:
- ConsoleExporter: Write samples, spans and log entries to stdout/stderr
- OTLPExporter: Export to OTLP-compatible backends (Collector, Tempo, etc.)
- GCPExporter: Export to Google Cloud Monitoring, Trace and Logging

Plugin registration:
    Exporters are registered via the workflow_telemetry_get_exporters hook.
    The BuiltinExportersPlugin in this module registers all built-in exporters.
"""

from workflow_telemetry.telemetry.exporters.console import ConsoleExporter
from workflow_telemetry.telemetry.exporters.gcp import GCPExporter
from workflow_telemetry.telemetry.exporters.otlp import OTLPExporter
from workflow_telemetry.telemetry.hookspecs import hookimpl


class BuiltinExportersPlugin:
    """Plugin that registers built-in telemetry exporters."""

    @hookimpl
    def workflow_telemetry_get_exporters(self) -> list[type]:
        """Return built-in exporter classes."""
        return [ConsoleExporter, OTLPExporter, GCPExporter]


__all__ = [
    "BuiltinExportersPlugin",
    "ConsoleExporter",
    "GCPExporter",
    "OTLPExporter",
]
