# src/workflow_telemetry/contracts/diagnostics.py
"""Structured diagnostics for pure reconstruction functions.

The resolver, normalizer and builder never log directly. They append
Diagnostic records to a DiagnosticLog handed in by the caller; the caller
replays them into structlog at the process boundary. Diagnostics are
advisory only and never change what a function returns.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

DiagnosticLevel = Literal["debug", "info", "warning", "error"]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One diagnostic event.

    Attributes:
        level: Log level to use when replayed
        event: snake_case event name (e.g. "matrix_job_matched_by_runner")
        fields: Extra structured context
    """

    level: DiagnosticLevel
    event: str
    fields: dict[str, Any] = field(default_factory=dict)


class DiagnosticLog:
    """Ordered, append-only collection of diagnostics."""

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._entries)

    @property
    def entries(self) -> tuple[Diagnostic, ...]:
        return tuple(self._entries)

    def add(self, level: DiagnosticLevel, event: str, **fields: Any) -> None:
        self._entries.append(Diagnostic(level=level, event=event, fields=fields))

    def debug(self, event: str, **fields: Any) -> None:
        self.add("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.add("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.add("warning", event, **fields)

    def events(self, level: DiagnosticLevel | None = None) -> list[str]:
        """Event names, optionally restricted to one level."""
        return [d.event for d in self._entries if level is None or d.level == level]

    def emit(self, logger: Any) -> None:
        """Replay every diagnostic into a structlog-style logger, then clear."""
        for diagnostic in self._entries:
            log_method = getattr(logger, diagnostic.level)
            log_method(diagnostic.event, **diagnostic.fields)
        self._entries.clear()
