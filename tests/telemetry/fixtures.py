# tests/telemetry/fixtures.py
"""Reusable recording sinks and exporter for telemetry tests.

These fixtures provide:
1. RecordingMetricSink / RecordingTraceSink / RecordingLogSink - capture
   everything emission code writes, for assertions
2. RecordingExporter - an ExporterProtocol bundling the three sinks
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


from workflow_telemetry.telemetry.logs import LogEntry


@dataclass
class Sample:
    instrument: str
    name: str
    value: float
    attributes: dict[str, str]


class RecordingInstrument:
    def __init__(self, sink: RecordingMetricSink, kind: str, name: str, unit: str) -> None:
        self._sink = sink
        self.kind = kind
        self.name = name
        self.unit = unit

    def _capture(self, amount: float, attributes: Mapping[str, str] | None) -> None:
        self._sink.samples.append(Sample(self.kind, self.name, amount, dict(attributes or {})))

    def record(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._capture(amount, attributes)

    def add(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._capture(amount, attributes)

    def set(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._capture(amount, attributes)


class RecordingMetricSink:
    """Captures every sample; instruments are cached per (kind, name)."""

    def __init__(self) -> None:
        self.samples: list[Sample] = []
        self.instruments: dict[tuple[str, str], RecordingInstrument] = {}

    def _get(self, kind: str, name: str, unit: str) -> RecordingInstrument:
        key = (kind, name)
        if key not in self.instruments:
            self.instruments[key] = RecordingInstrument(self, kind, name, unit)
        return self.instruments[key]

    def create_histogram(self, name: str, *, description: str = "", unit: str = "") -> RecordingInstrument:
        return self._get("histogram", name, unit)

    def create_counter(self, name: str, *, description: str = "", unit: str = "") -> RecordingInstrument:
        return self._get("counter", name, unit)

    def create_gauge(self, name: str, *, description: str = "", unit: str = "") -> RecordingInstrument:
        return self._get("gauge", name, unit)

    def named(self, name: str) -> list[Sample]:
        return [sample for sample in self.samples if sample.name == name]


@dataclass
class RecordedSpan:
    name: str
    attributes: dict[str, str]
    start_time: datetime
    parent: RecordedSpan | None = None
    end_time: datetime | None = None
    error: str | None = None
    exceptions: list[BaseException] = field(default_factory=list)


class RecordingTraceSink:
    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    def start_span(
        self,
        name: str,
        *,
        attributes: Mapping[str, str],
        start_time: datetime,
        parent: RecordedSpan | None = None,
    ) -> RecordedSpan:
        span = RecordedSpan(name=name, attributes=dict(attributes), start_time=start_time, parent=parent)
        self.spans.append(span)
        return span

    def set_error(self, span: RecordedSpan, message: str) -> None:
        span.error = message

    def record_exception(self, span: RecordedSpan, exception: BaseException) -> None:
        span.exceptions.append(exception)

    def end_span(self, span: RecordedSpan, end_time: datetime) -> None:
        span.end_time = end_time

    @property
    def root(self) -> RecordedSpan:
        roots = [span for span in self.spans if span.parent is None]
        assert len(roots) == 1, f"expected one root span, got {len(roots)}"
        return roots[0]

    @property
    def children(self) -> list[RecordedSpan]:
        return [span for span in self.spans if span.parent is not None]


class RecordingLogSink:
    def __init__(self) -> None:
        self.batches: list[list[LogEntry]] = []

    def write(self, entries: Sequence[LogEntry]) -> None:
        self.batches.append(list(entries))

    @property
    def entries(self) -> list[LogEntry]:
        return [entry for batch in self.batches for entry in batch]


class FailingMetricSink(RecordingMetricSink):
    """Metric sink whose instruments raise, like an unreachable backend."""

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def create_histogram(self, name: str, *, description: str = "", unit: str = "") -> RecordingInstrument:
        raise self.error


class RecordingExporter:
    """In-memory ExporterProtocol implementation.

    Example:
        exporter = RecordingExporter()
        export_run(settings, context, source, exporter)
        assert exporter.metric_sink.named("github.actions.job.duration")
    """

    def __init__(self, name: str = "recording", *, flush_result: bool = True) -> None:
        self._name = name
        self.metric_sink: RecordingMetricSink = RecordingMetricSink()
        self.trace_sink = RecordingTraceSink()
        self.log_sink = RecordingLogSink()
        self.flush_result = flush_result
        self.config: dict[str, Any] | None = None
        self.flush_count = 0
        self.close_count = 0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        self.config = config

    @property
    def metrics(self) -> RecordingMetricSink:
        return self.metric_sink

    @property
    def traces(self) -> RecordingTraceSink:
        return self.trace_sink

    @property
    def logs(self) -> RecordingLogSink:
        return self.log_sink

    def flush(self) -> bool:
        self.flush_count += 1
        return self.flush_result

    def close(self) -> None:
        self.close_count += 1
