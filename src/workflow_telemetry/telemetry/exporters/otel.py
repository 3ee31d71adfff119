# src/workflow_telemetry/telemetry/exporters/otel.py
"""Sinks over the OpenTelemetry SDK, shared by the otlp and gcp exporters.

Subclasses supply the backend-specific metric exporter, span exporter and
log sink. This base owns the MeterProvider/TracerProvider lifecycle.

Metrics are aggregated in-process and pushed on flush(): the periodic
reader's interval is longer than any job, so exports happen when
force_flush asks for them and the returned acknowledgment says whether
they made it.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from workflow_telemetry.telemetry.errors import TelemetryExporterError
from workflow_telemetry.telemetry.protocols import LogSinkProtocol

if TYPE_CHECKING:
    from opentelemetry.metrics import Meter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import MetricExporter, MetricReader
    from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Span, Tracer

logger = structlog.get_logger(__name__)

# Longer than any workflow job: exports are driven by flush()
METRIC_EXPORT_INTERVAL_MS = 24 * 60 * 60 * 1000
DEFAULT_EXPORT_TIMEOUT_MS = 30_000
INSTRUMENTATION_SCOPE = "workflow_telemetry"


def to_ns(value: datetime) -> int:
    """Nanoseconds since the epoch; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1_000_000) * 1_000


class OTelMetricSink:
    """MetricSinkProtocol over an OpenTelemetry Meter.

    Instruments are cached by kind and name so creating one twice returns
    the first instance.
    """

    def __init__(self, meter: Meter) -> None:
        self._meter = meter
        self._instruments: dict[str, Any] = {}

    def _get_or_create(self, kind: str, name: str, factory: Any, description: str, unit: str) -> Any:
        key = f"{kind}_{name}"
        if key not in self._instruments:
            self._instruments[key] = factory(name, unit=unit, description=description)
        return self._instruments[key]

    def create_histogram(self, name: str, *, description: str = "", unit: str = "") -> Any:
        return self._get_or_create("histogram", name, self._meter.create_histogram, description, unit)

    def create_counter(self, name: str, *, description: str = "", unit: str = "") -> Any:
        return self._get_or_create("counter", name, self._meter.create_counter, description, unit)

    def create_gauge(self, name: str, *, description: str = "", unit: str = "") -> Any:
        return self._get_or_create("gauge", name, self._meter.create_gauge, description, unit)


class OTelTraceSink:
    """TraceSinkProtocol over an OpenTelemetry Tracer."""

    def __init__(self, tracer: Tracer) -> None:
        self._tracer = tracer

    def start_span(
        self,
        name: str,
        *,
        attributes: Mapping[str, str],
        start_time: datetime,
        parent: Span | None = None,
    ) -> Span:
        from opentelemetry import context as otel_context
        from opentelemetry import trace

        # Root spans start from an empty context so an ambient span never adopts them
        parent_context = trace.set_span_in_context(parent) if parent is not None else otel_context.Context()
        return self._tracer.start_span(
            name,
            context=parent_context,
            attributes=dict(attributes),
            start_time=to_ns(start_time),
        )

    def set_error(self, span: Span, message: str) -> None:
        from opentelemetry.trace import Status, StatusCode

        span.set_status(Status(StatusCode.ERROR, message))

    def record_exception(self, span: Span, exception: BaseException) -> None:
        span.record_exception(exception)

    def end_span(self, span: Span, end_time: datetime) -> None:
        span.end(end_time=to_ns(end_time))


class OTelExporterBase:
    """Common lifecycle for exporters built on the OpenTelemetry SDK.

    Subclasses implement _create_metric_exporter, _create_span_exporter and
    _create_log_sink. Tests override _create_metric_reader and
    _create_span_processor to capture output in memory.

    Common configuration options:
        service_name: service.name resource attribute
        service_namespace: service.namespace resource attribute
        service_instance_id: service.instance.id (the workflow run id)
        export_timeout_ms: Flush/export timeout (default: 30000)
    """

    _name = "otel"

    def __init__(self) -> None:
        """Initialize unconfigured exporter."""
        self._meter_provider: MeterProvider | None = None
        self._tracer_provider: TracerProvider | None = None
        self._metric_sink: OTelMetricSink | None = None
        self._trace_sink: OTelTraceSink | None = None
        self._log_sink: LogSinkProtocol | None = None
        self._export_timeout_ms: int = DEFAULT_EXPORT_TIMEOUT_MS
        self._closed = False

    @property
    def name(self) -> str:
        """Exporter name for configuration reference."""
        return self._name

    def _create_metric_exporter(self, config: dict[str, Any]) -> MetricExporter:
        raise NotImplementedError

    def _create_span_exporter(self, config: dict[str, Any]) -> SpanExporter:
        raise NotImplementedError

    def _create_log_sink(self, config: dict[str, Any]) -> LogSinkProtocol:
        raise NotImplementedError

    def _validate(self, config: dict[str, Any]) -> None:
        """Backend-specific option checks; runs before any SDK import."""

    def _create_metric_reader(self, config: dict[str, Any]) -> MetricReader:
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

        return PeriodicExportingMetricReader(
            self._create_metric_exporter(config),
            export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
            export_timeout_millis=self._export_timeout_ms,
        )

    def _create_span_processor(self, config: dict[str, Any]) -> SpanProcessor:
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        return BatchSpanProcessor(
            self._create_span_exporter(config),
            export_timeout_millis=self._export_timeout_ms,
        )

    def configure(self, config: dict[str, Any]) -> None:
        """Build providers and sinks from exporter options.

        Raises:
            TelemetryExporterError: If options are invalid or the
                OpenTelemetry SDK is not installed
        """
        timeout = config.get("export_timeout_ms", DEFAULT_EXPORT_TIMEOUT_MS)
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 1:
            raise TelemetryExporterError(
                self._name,
                f"export_timeout_ms must be a positive integer, got {timeout!r}",
            )
        self._export_timeout_ms = timeout
        self._validate(config)

        try:
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.resources import Resource
            from opentelemetry.sdk.trace import TracerProvider
        except ImportError as e:
            raise TelemetryExporterError(
                self._name,
                f"OpenTelemetry SDK not installed: {e}. Install with: pip install opentelemetry-sdk",
            ) from e

        resource = Resource.create(
            {
                "service.name": str(config.get("service_name", "github-actions")),
                "service.namespace": str(config.get("service_namespace", "ci")),
                "service.instance.id": str(config.get("service_instance_id", "unknown")),
            }
        )

        self._meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[self._create_metric_reader(config)],
        )
        self._tracer_provider = TracerProvider(resource=resource)
        self._tracer_provider.add_span_processor(self._create_span_processor(config))

        self._metric_sink = OTelMetricSink(self._meter_provider.get_meter(INSTRUMENTATION_SCOPE))
        self._trace_sink = OTelTraceSink(self._tracer_provider.get_tracer(INSTRUMENTATION_SCOPE))
        self._log_sink = self._create_log_sink(config)
        self._closed = False

        logger.debug(
            "otel_exporter_configured",
            exporter=self._name,
            service_name=resource.attributes["service.name"],
            export_timeout_ms=self._export_timeout_ms,
        )

    def _require(self, sink: Any) -> Any:
        if sink is None:
            raise TelemetryExporterError(self._name, "Exporter used before configure()")
        return sink

    @property
    def metrics(self) -> OTelMetricSink:
        return self._require(self._metric_sink)  # type: ignore[no-any-return]

    @property
    def traces(self) -> OTelTraceSink:
        return self._require(self._trace_sink)  # type: ignore[no-any-return]

    @property
    def logs(self) -> LogSinkProtocol:
        return self._require(self._log_sink)  # type: ignore[no-any-return]

    def flush(self) -> bool:
        """Force-flush both providers and report whether both acknowledged."""
        metrics_flushed = True
        traces_flushed = True
        if self._meter_provider is not None:
            metrics_flushed = self._meter_provider.force_flush(timeout_millis=self._export_timeout_ms)
        if self._tracer_provider is not None:
            traces_flushed = self._tracer_provider.force_flush(timeout_millis=self._export_timeout_ms)

        if not (metrics_flushed and traces_flushed):
            logger.warning(
                "telemetry_flush_incomplete",
                exporter=self._name,
                metrics_flushed=metrics_flushed,
                traces_flushed=traces_flushed,
                timeout_ms=self._export_timeout_ms,
            )
            return False
        logger.debug("telemetry_flushed", exporter=self._name)
        return True

    def close(self) -> None:
        """Shut down both providers. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._meter_provider is not None:
            self._meter_provider.shutdown()
            self._meter_provider = None
        if self._tracer_provider is not None:
            self._tracer_provider.shutdown()
            self._tracer_provider = None
        log_sink_close = getattr(self._log_sink, "close", None)
        if callable(log_sink_close):
            log_sink_close()
        logger.debug("otel_exporter_closed", exporter=self._name)
