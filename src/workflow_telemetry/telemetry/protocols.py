# src/workflow_telemetry/telemetry/protocols.py
"""Capability interfaces between emission code and telemetry backends.

Emission (metrics.py, traces.py, logs.py) only ever talks to these
protocols. Each backend supplies adapters behind them, so no emission code
branches on which backend is in use.

The instrument protocols match the OpenTelemetry
API instruments (record/add/set with an attribute mapping), so an SDK
instrument satisfies them without wrapping.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from workflow_telemetry.telemetry.logs import LogEntry

Attributes = Mapping[str, str]


class HistogramProtocol(Protocol):
    def record(self, amount: float, attributes: Attributes | None = None) -> None: ...


class CounterProtocol(Protocol):
    def add(self, amount: float, attributes: Attributes | None = None) -> None: ...


class GaugeProtocol(Protocol):
    def set(self, amount: float, attributes: Attributes | None = None) -> None: ...


@runtime_checkable
class MetricSinkProtocol(Protocol):
    """Creates named measurement instruments.

    Creation is idempotent per name: asking twice for the same name returns
    the same instrument.
    """

    def create_histogram(self, name: str, *, description: str = "", unit: str = "") -> HistogramProtocol: ...

    def create_counter(self, name: str, *, description: str = "", unit: str = "") -> CounterProtocol: ...

    def create_gauge(self, name: str, *, description: str = "", unit: str = "") -> GaugeProtocol: ...


@runtime_checkable
class TraceSinkProtocol(Protocol):
    """Creates and finishes spans.

    Span handles are opaque to callers; they are only passed back into the
    same sink (as a parent, or to set status and end).
    """

    def start_span(
        self,
        name: str,
        *,
        attributes: Attributes,
        start_time: datetime,
        parent: Any | None = None,
    ) -> Any: ...

    def set_error(self, span: Any, message: str) -> None: ...

    def record_exception(self, span: Any, exception: BaseException) -> None: ...

    def end_span(self, span: Any, end_time: datetime) -> None: ...


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Writes batches of structured log entries."""

    def write(self, entries: Sequence[LogEntry]) -> None: ...


@runtime_checkable
class ExporterProtocol(Protocol):
    """Protocol for telemetry backends.

    An exporter bundles the three sinks for one backend and owns their
    lifecycle. Exporters are discovered via pluggy hooks and selected by
    name in settings.

    Lifecycle:
        1. Discovery: workflow_telemetry_get_exporters hook returns exporter classes
        2. Instantiation: the factory creates an instance
        3. Configuration: configure() called with exporter-specific options
        4. Operation: emission writes through metrics/traces/logs
        5. Shutdown: flush() then close()

    Error handling:
        - configure() MUST raise TelemetryExporterError on invalid config
        - sink writes may raise; the orchestrator applies the failure policy
        - close() MUST be idempotent - safe to call multiple times
    """

    @property
    def name(self) -> str:
        """Exporter name for configuration reference.

        This name is used in settings to select the exporter:

            exporter:
              name: otlp  # matches this property
              options:
                endpoint: http://localhost:4317
        """
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the exporter with options from settings.

        Args:
            config: Exporter-specific options dict

        Raises:
            TelemetryExporterError: If configuration is invalid or incomplete
        """
        ...

    @property
    def metrics(self) -> MetricSinkProtocol: ...

    @property
    def traces(self) -> TraceSinkProtocol: ...

    @property
    def logs(self) -> LogSinkProtocol: ...

    def flush(self) -> bool:
        """Push everything buffered to the backend and wait for the acknowledgment.

        Returns:
            True when every provider confirmed the flush, False when any
            flush did not complete within its timeout.
        """
        ...

    def close(self) -> None:
        """Release resources. Must be idempotent."""
        ...
