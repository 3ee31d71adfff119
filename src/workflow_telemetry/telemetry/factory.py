# src/workflow_telemetry/telemetry/factory.py
"""Turn TelemetrySettings into a configured exporter.

Exporter classes are collected from ``workflow_telemetry_get_exporters``
hooks (the built-ins plus any caller-supplied plugins), looked up by the
configured name, then configured with the exporter options merged over
the resource identity (service name/namespace, run id).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import pluggy
import structlog

from workflow_telemetry.core.config import TelemetrySettings
from workflow_telemetry.telemetry.errors import TelemetryExporterError
from workflow_telemetry.telemetry.exporters import BuiltinExportersPlugin
from workflow_telemetry.telemetry.hookspecs import PROJECT_NAME, WorkflowTelemetrySpec
from workflow_telemetry.telemetry.protocols import ExporterProtocol

logger = structlog.get_logger(__name__)

_PLUGINS = "telemetry_plugins"


def _exporter_name(exporter_class: type[ExporterProtocol]) -> str:
    """Registry key for an exporter class.

    A ``_name`` declared on the class itself is used when present; otherwise
    the class is instantiated with no arguments and asked for ``name``.
    """
    declared = exporter_class.__dict__.get("_name")
    if declared is None:
        try:
            declared = exporter_class().name
        except Exception as e:  # pragma: no cover - plugin code boundary
            raise TelemetryExporterError(
                exporter_class.__name__, f"could not instantiate exporter to read its name: {e}"
            ) from e
    if not isinstance(declared, str) or not declared:
        raise TelemetryExporterError(
            exporter_class.__name__, f"exporter name must be a non-empty string, got {declared!r}"
        )
    return declared


def _plugin_manager(exporter_plugins: Iterable[Any]) -> pluggy.PluginManager:
    manager = pluggy.PluginManager(PROJECT_NAME)
    manager.add_hookspecs(WorkflowTelemetrySpec)
    for plugin in (BuiltinExportersPlugin(), *exporter_plugins):
        try:
            manager.register(plugin)
        except ValueError as e:
            # pluggy raises ValueError for an object registered twice
            raise TelemetryExporterError(_PLUGINS, f"cannot register {type(plugin).__name__}: {e}") from e
        try:
            manager.check_pending()
        except pluggy.PluginValidationError as e:
            manager.unregister(plugin=plugin)
            raise TelemetryExporterError(_PLUGINS, f"invalid exporter plugin {type(plugin).__name__}: {e}") from e
    return manager


def _classes_from(hook_impl: pluggy.HookImpl) -> Iterator[type[ExporterProtocol]]:
    plugin_name = type(hook_impl.plugin).__name__
    try:
        provided = hook_impl.function()
    except Exception as e:
        raise TelemetryExporterError(_PLUGINS, f"exporter hook of {plugin_name} raised: {e}") from e

    not_iterable = TelemetryExporterError(
        _PLUGINS,
        f"exporter hook of {plugin_name} returned {type(provided).__name__}; "
        "expected iterable of exporter classes",
    )
    if provided is None or isinstance(provided, (str, bytes)):
        raise not_iterable
    try:
        yield from iter(provided)
    except TypeError as e:
        raise not_iterable from e


def discover_exporter_registry(
    exporter_plugins: Iterable[Any] = (),
) -> dict[str, type[ExporterProtocol]]:
    """Map exporter name to class across built-in and extra plugins.

    Raises:
        TelemetryExporterError: On a plugin that fails registration or its
            hook, a hook result that is not an iterable of classes, or a
            name claimed by two classes
    """
    manager = _plugin_manager(exporter_plugins)
    registry: dict[str, type[ExporterProtocol]] = {}
    for hook_impl in manager.hook.workflow_telemetry_get_exporters.get_hookimpls():
        for exporter_class in _classes_from(hook_impl):
            name = _exporter_name(exporter_class)
            clash = registry.setdefault(name, exporter_class)
            if clash is not exporter_class:
                raise TelemetryExporterError(
                    name,
                    f"Duplicate telemetry exporter name '{name}': {clash.__name__} and {exporter_class.__name__}",
                )
    return registry


def exporter_options(settings: TelemetrySettings, run_id: int | None = None) -> dict[str, Any]:
    """Exporter options with the resource identity filled in.

    Explicit options win over the top-level service settings.
    """
    return {
        "service_name": settings.service_name,
        "service_namespace": settings.service_namespace,
        "service_instance_id": str(run_id) if run_id is not None else "unknown",
        **settings.exporter.options,
    }


def create_exporter(
    settings: TelemetrySettings,
    *,
    run_id: int | None = None,
    exporter_plugins: Iterable[Any] = (),
) -> ExporterProtocol:
    """Create and configure the exporter named in settings.

    Args:
        settings: Validated settings
        run_id: Workflow run id, used as service.instance.id
        exporter_plugins: Additional plugin objects providing
            ``workflow_telemetry_get_exporters`` hooks

    Raises:
        TelemetryExporterError: If discovery fails, the name is unknown or
            the exporter rejects its configuration
    """
    registry = discover_exporter_registry(exporter_plugins)
    name = settings.exporter.name
    try:
        exporter_class = registry[name]
    except KeyError:
        available = sorted(registry.keys())
        raise TelemetryExporterError(
            exporter_name=name,
            message=f"Unknown exporter. Available exporters: {available}",
        ) from None

    exporter = exporter_class()
    exporter.configure(exporter_options(settings, run_id))
    logger.debug(
        "exporter_configured",
        exporter=name,
        options_keys=sorted(settings.exporter.options.keys()),
    )
    return exporter
