# src/workflow_telemetry/telemetry/exporters/gcp.py
"""Google Cloud exporter: Cloud Monitoring, Cloud Trace and Cloud Logging.

Requires the optional ``gcp`` extra. Credentials come from the
``credentials_json`` option (a service-account key) or, when absent,
Application Default Credentials.
"""

from __future__ import annotations

import json
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

LOG_NAME = "github-actions"
RESOURCE_TYPE = "generic_task"
_INSTALL_HINT = "Install with: pip install 'workflow-telemetry[gcp]'"


class CloudLoggingSink:
    """LogSinkProtocol over a google-cloud-logging Logger; one API call per batch."""

    def __init__(self, cloud_logger: Any) -> None:
        self._logger = cloud_logger

    def write(self, entries: Sequence[LogEntry]) -> None:
        from google.cloud.logging import Resource

        batch = self._logger.batch()
        for entry in entries:
            batch.log_struct(
                entry.payload,
                severity=entry.severity.value,
                timestamp=entry.timestamp,
                labels=entry.labels,
                resource=Resource(type=RESOURCE_TYPE, labels=entry.resource_labels),
            )
        batch.commit()


class GCPExporter(OTelExporterBase):
    """Export metrics, traces and logs to Google Cloud Observability.

    Configuration options:
        project_id: Google Cloud project (required)
        credentials_json: Service-account key JSON (optional; defaults to
            Application Default Credentials)
        export_timeout_ms: Export/flush timeout (default: 30000)

    Example configuration:
        exporter:
          name: gcp
          options:
            project_id: my-project
            credentials_json: ${GCP_SA_KEY}
    """

    _name = "gcp"

    def __init__(self) -> None:
        super().__init__()
        self._project_id: str | None = None
        self._credentials_info: dict[str, Any] | None = None
        self._credentials: Any = None
        self._logging_client: Any = None

    def _validate(self, config: dict[str, Any]) -> None:
        project_id = config.get("project_id")
        if not project_id or not isinstance(project_id, str):
            raise TelemetryExporterError(self._name, "GCP exporter requires 'project_id' in config")
        self._project_id = project_id

        credentials_json = config.get("credentials_json")
        if credentials_json:
            try:
                info = json.loads(credentials_json)
            except (TypeError, ValueError) as e:
                raise TelemetryExporterError(self._name, f"Invalid service account key JSON: {e}") from e
            if not isinstance(info, dict):
                raise TelemetryExporterError(self._name, "Invalid service account key JSON: expected an object")
            self._credentials_info = info
            logger.info("gcp_credentials", source="service_account_key")
        else:
            self._credentials_info = None
            logger.info("gcp_credentials", source="application_default")

    def _get_credentials(self) -> Any:
        if self._credentials_info is None:
            return None
        if self._credentials is None:
            try:
                from google.oauth2 import service_account
            except ImportError as e:
                raise TelemetryExporterError(self._name, f"google-auth not installed: {e}. {_INSTALL_HINT}") from e
            try:
                self._credentials = service_account.Credentials.from_service_account_info(self._credentials_info)
            except ValueError as e:
                raise TelemetryExporterError(self._name, f"Invalid service account key: {e}") from e
        return self._credentials

    def _create_metric_exporter(self, config: dict[str, Any]) -> MetricExporter:
        try:
            from google.cloud.monitoring_v3 import MetricServiceClient
            from opentelemetry.exporter.cloud_monitoring import CloudMonitoringMetricsExporter
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"Cloud Monitoring exporter not installed: {e}. {_INSTALL_HINT}",
            ) from e
        credentials = self._get_credentials()
        client = MetricServiceClient(credentials=credentials) if credentials is not None else None
        return CloudMonitoringMetricsExporter(project_id=self._project_id, client=client)

    def _create_span_exporter(self, config: dict[str, Any]) -> SpanExporter:
        try:
            from google.cloud.trace_v2 import TraceServiceClient
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"Cloud Trace exporter not installed: {e}. {_INSTALL_HINT}",
            ) from e
        credentials = self._get_credentials()
        client = TraceServiceClient(credentials=credentials) if credentials is not None else None
        return CloudTraceSpanExporter(project_id=self._project_id, client=client)

    def _create_log_sink(self, config: dict[str, Any]) -> CloudLoggingSink:
        try:
            from google.cloud import logging as cloud_logging
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"google-cloud-logging not installed: {e}. {_INSTALL_HINT}",
            ) from e
        self._logging_client = cloud_logging.Client(project=self._project_id, credentials=self._get_credentials())
        return CloudLoggingSink(self._logging_client.logger(LOG_NAME))

    def close(self) -> None:
        super().close()
        if self._logging_client is not None:
            self._logging_client.close()
            self._logging_client = None
