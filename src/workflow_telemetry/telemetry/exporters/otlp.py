# src/workflow_telemetry/telemetry/exporters/otlp.py
"""OTLP exporter for workflow telemetry.

Ships metrics and traces via OpenTelemetry Protocol (gRPC) to any
compatible backend: an OpenTelemetry Collector, Tempo, Honeycomb, etc.
OTLP log export is not used; log entries go to the structured log stream.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from workflow_telemetry.telemetry.errors import TelemetryExporterError
from workflow_telemetry.telemetry.exporters.otel import OTelExporterBase

if TYPE_CHECKING:
    from opentelemetry.sdk.metrics.export import MetricExporter
    from opentelemetry.sdk.trace.export import SpanExporter

    from workflow_telemetry.telemetry.logs import LogEntry

logger = structlog.get_logger(__name__)

_INSTALL_HINT = "Install with: pip install opentelemetry-exporter-otlp-proto-grpc"


class StructlogLogSink:
    """LogSinkProtocol that writes entries as structlog events."""

    def __init__(self, logger_name: str = "workflow_telemetry.job_log") -> None:
        self._logger = structlog.get_logger(logger_name)

    def write(self, entries: Sequence[LogEntry]) -> None:
        for entry in entries:
            log_method = getattr(self._logger, entry.severity.value.lower())
            log_method(
                "job_log_entry",
                entry_timestamp=entry.timestamp.isoformat(),
                labels=entry.labels,
                payload=entry.payload,
            )


class OTLPExporter(OTelExporterBase):
    """Export metrics and traces via OTLP/gRPC.

    Configuration options:
        endpoint: OTLP endpoint URL (required). For gRPC, typically port 4317.
        headers: Optional dict of headers (e.g., Authorization)
        insecure: Disable TLS (default: False)
        export_timeout_ms: Export/flush timeout (default: 30000)

    Example configuration:
        exporter:
          name: otlp
          options:
            endpoint: http://localhost:4317
            headers:
              Authorization: Bearer ${OTEL_TOKEN}
    """

    _name = "otlp"

    def __init__(self) -> None:
        super().__init__()
        self._endpoint: str | None = None
        self._headers: dict[str, str] = {}
        self._insecure: bool = False

    def _validate(self, config: dict[str, Any]) -> None:
        endpoint = config.get("endpoint")
        if not endpoint or not isinstance(endpoint, str):
            raise TelemetryExporterError(self._name, "OTLP exporter requires 'endpoint' in config")
        headers = config.get("headers") or {}
        if not isinstance(headers, dict):
            raise TelemetryExporterError(
                self._name,
                f"'headers' must be a mapping, got {type(headers).__name__}",
            )
        self._endpoint = endpoint
        self._headers = {str(k): str(v) for k, v in headers.items()}
        self._insecure = bool(config.get("insecure", False))

    def _create_metric_exporter(self, config: dict[str, Any]) -> MetricExporter:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"OpenTelemetry OTLP exporter not installed: {e}. {_INSTALL_HINT}",
            ) from e
        return OTLPMetricExporter(
            endpoint=self._endpoint,
            headers=self._headers or None,
            insecure=self._insecure,
            timeout=self._export_timeout_ms / 1000,
        )

    def _create_span_exporter(self, config: dict[str, Any]) -> SpanExporter:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"OpenTelemetry OTLP exporter not installed: {e}. {_INSTALL_HINT}",
            ) from e
        return OTLPSpanExporter(
            endpoint=self._endpoint,
            headers=self._headers or None,
            insecure=self._insecure,
            timeout=self._export_timeout_ms / 1000,
        )

    def _create_log_sink(self, config: dict[str, Any]) -> StructlogLogSink:
        logger.debug(
            "otlp_exporter_configured",
            endpoint=self._endpoint,
            headers_count=len(self._headers),
            insecure=self._insecure,
        )
        return StructlogLogSink()
