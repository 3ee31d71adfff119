# src/workflow_telemetry/telemetry/exporters/console.py
"""Console exporter for workflow telemetry.

Writes every metric sample, finished span and log entry to stdout or
stderr in JSON or human-readable format. Used for local debugging and as
the default backend when nothing else is configured.
"""

from __future__ import annotations

import itertools
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal, TextIO, cast

import structlog

from workflow_telemetry.telemetry.errors import TelemetryExporterError

if TYPE_CHECKING:
    from workflow_telemetry.telemetry.logs import LogEntry

logger = structlog.get_logger(__name__)


_Format = Literal["json", "pretty"]
_Output = Literal["stdout", "stderr"]

_FORMATS: tuple[_Format, ...] = ("json", "pretty")
_OUTPUTS: tuple[_Output, ...] = ("stdout", "stderr")


def _option(config: Mapping[str, Any], key: str, choices: tuple[str, ...]) -> str:
    """Read a string option restricted to ``choices``; the first choice is the default."""
    value = config.get(key, choices[0])
    if not isinstance(value, str):
        raise TelemetryExporterError(ConsoleExporter._name, f"'{key}' must be a string, got {type(value).__name__}")
    if value not in choices:
        raise TelemetryExporterError(
            ConsoleExporter._name,
            f"Invalid {key} '{value}'. Must be one of: {', '.join(sorted(choices))}",
        )
    return value


class _ConsoleWriter:
    def __init__(self, format: _Format, stream: TextIO) -> None:
        self.format = format
        self.stream = stream

    def write(self, kind: str, record: dict[str, Any]) -> None:
        if self.format == "json":
            line = json.dumps({"type": kind, **record}, default=_json_default, sort_keys=True)
        else:
            line = self._format_pretty(kind, record)
        print(line, file=self.stream)

    def _format_pretty(self, kind: str, record: dict[str, Any]) -> str:
        """Format: [kind] name value (key=value, ...)"""
        head = record.get("name") or record.get("severity") or ""
        value = record.get("value", record.get("message", ""))
        details = []
        for key, item in sorted(record.items()):
            if key in {"name", "value", "message", "severity"} or item is None:
                continue
            if isinstance(item, Mapping):
                item = ", ".join(f"{k}={v}" for k, v in sorted(item.items()))
            elif isinstance(item, datetime):
                item = item.isoformat()
            details.append(f"{key}={item}")
        if details:
            return f"[{kind}] {head} {value} ({'; '.join(details)})"
        return f"[{kind}] {head} {value}"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class _ConsoleInstrument:
    """Histogram, counter and gauge in one: each sample is written as a line."""

    def __init__(self, writer: _ConsoleWriter, kind: str, name: str, unit: str) -> None:
        self._writer = writer
        self.kind = kind
        self.name = name
        self.unit = unit

    def _write(self, amount: float, attributes: Mapping[str, str] | None) -> None:
        self._writer.write(
            "metric",
            {
                "instrument": self.kind,
                "name": self.name,
                "unit": self.unit,
                "value": amount,
                "attributes": dict(attributes or {}),
            },
        )

    def record(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._write(amount, attributes)

    def add(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._write(amount, attributes)

    def set(self, amount: float, attributes: Mapping[str, str] | None = None) -> None:
        self._write(amount, attributes)


class ConsoleMetricSink:
    def __init__(self, writer: _ConsoleWriter) -> None:
        self._writer = writer
        self._instruments: dict[tuple[str, str], _ConsoleInstrument] = {}

    def _get_or_create(self, kind: str, name: str, unit: str) -> _ConsoleInstrument:
        key = (kind, name)
        if key not in self._instruments:
            self._instruments[key] = _ConsoleInstrument(self._writer, kind, name, unit)
        return self._instruments[key]

    def create_histogram(self, name: str, *, description: str = "", unit: str = "") -> _ConsoleInstrument:
        return self._get_or_create("histogram", name, unit)

    def create_counter(self, name: str, *, description: str = "", unit: str = "") -> _ConsoleInstrument:
        return self._get_or_create("counter", name, unit)

    def create_gauge(self, name: str, *, description: str = "", unit: str = "") -> _ConsoleInstrument:
        return self._get_or_create("gauge", name, unit)


@dataclass
class ConsoleSpan:
    span_id: int
    name: str
    attributes: dict[str, str]
    start_time: datetime
    parent_id: int | None = None
    status: str = "unset"
    status_message: str | None = None
    exceptions: list[str] = field(default_factory=list)


class ConsoleTraceSink:
    def __init__(self, writer: _ConsoleWriter) -> None:
        self._writer = writer
        self._ids = itertools.count(1)

    def start_span(
        self,
        name: str,
        *,
        attributes: Mapping[str, str],
        start_time: datetime,
        parent: ConsoleSpan | None = None,
    ) -> ConsoleSpan:
        return ConsoleSpan(
            span_id=next(self._ids),
            name=name,
            attributes=dict(attributes),
            start_time=start_time,
            parent_id=parent.span_id if parent is not None else None,
        )

    def set_error(self, span: ConsoleSpan, message: str) -> None:
        span.status = "error"
        span.status_message = message

    def record_exception(self, span: ConsoleSpan, exception: BaseException) -> None:
        span.exceptions.append(f"{type(exception).__name__}: {exception}")

    def end_span(self, span: ConsoleSpan, end_time: datetime) -> None:
        self._writer.write(
            "span",
            {
                "name": span.name,
                "span_id": span.span_id,
                "parent_id": span.parent_id,
                "start_time": span.start_time,
                "end_time": end_time,
                "status": span.status,
                "status_message": span.status_message,
                "exceptions": span.exceptions or None,
                "attributes": span.attributes,
            },
        )


class ConsoleLogSink:
    def __init__(self, writer: _ConsoleWriter) -> None:
        self._writer = writer

    def write(self, entries: Sequence[LogEntry]) -> None:
        for entry in entries:
            self._writer.write(
                "log",
                {
                    "severity": entry.severity.value,
                    "timestamp": entry.timestamp,
                    "message": entry.message,
                    "labels": entry.labels,
                },
            )


class ConsoleExporter:
    """Print telemetry for local runs and debugging.

    Options:
        format: ``json`` (default, one object per line) or ``pretty``
        output: ``stdout`` (default) or ``stderr``

    Example::

        exporter:
          name: console
          options:
            format: pretty
            output: stderr
    """

    _name = "console"

    def __init__(self) -> None:
        self._format: _Format = "json"
        self._output: _Output = "stdout"
        self._writer = _ConsoleWriter(self._format, sys.stdout)
        self._metrics = ConsoleMetricSink(self._writer)
        self._traces = ConsoleTraceSink(self._writer)
        self._logs = ConsoleLogSink(self._writer)

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Apply ``format`` and ``output``.

        Raises:
            TelemetryExporterError: On a non-string or unsupported value
        """
        self._format = cast(_Format, _option(config, "format", _FORMATS))
        self._output = cast(_Output, _option(config, "output", _OUTPUTS))
        self._writer.format = self._format
        self._writer.stream = sys.stderr if self._output == "stderr" else sys.stdout
        logger.debug("console_exporter_configured", format=self._format, output=self._output)

    @property
    def metrics(self) -> ConsoleMetricSink:
        return self._metrics

    @property
    def traces(self) -> ConsoleTraceSink:
        return self._traces

    @property
    def logs(self) -> ConsoleLogSink:
        return self._logs

    def flush(self) -> bool:
        """Flush the underlying stream. Console writes are synchronous, so this always acknowledges."""
        self._writer.stream.flush()
        return True

    def close(self) -> None:
        """No-op: the console exporter does not own stdout/stderr."""
        pass
