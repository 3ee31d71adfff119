# src/workflow_telemetry/telemetry/errors.py
"""Telemetry-specific exceptions.

These are for exporter discovery and setup only. Failures while writing
samples, spans or log entries propagate as whatever the backend raised;
the orchestrator decides whether they are fatal.
"""


class TelemetryExporterError(Exception):
    """Raised when an exporter cannot be discovered, configured or initialized.

    Attributes:
        exporter_name: Name of the exporter that failed
        message: Human-readable error description
    """

    def __init__(self, exporter_name: str, message: str) -> None:
        self.exporter_name = exporter_name
        self.message = message
        super().__init__(f"Exporter '{exporter_name}' failed: {message}")
