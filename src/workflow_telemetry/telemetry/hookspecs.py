# src/workflow_telemetry/telemetry/hookspecs.py
"""pluggy hook specifications for telemetry exporters.

Exporters implement these hooks to register themselves. The exporter
factory calls them to build the name -> class registry.

Usage (implementing an exporter plugin):
    from workflow_telemetry.telemetry.hookspecs import hookimpl

    class MyExporterPlugin:
        @hookimpl
        def workflow_telemetry_get_exporters(self):
            return [MyExporter]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from workflow_telemetry.telemetry.protocols import ExporterProtocol

PROJECT_NAME = "workflow_telemetry"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class WorkflowTelemetrySpec:
    """Hook specifications for telemetry exporter plugins."""

    @hookspec
    def workflow_telemetry_get_exporters(self) -> list[type["ExporterProtocol"]]:  # type: ignore[empty-body]
        """Return telemetry exporter classes (not instances) implementing ExporterProtocol."""
