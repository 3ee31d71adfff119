# src/workflow_telemetry/cli.py
"""Command line entry point for workflow-telemetry.

Process boundary: the runner environment is read here, logging is
configured here, and domain errors are mapped to exit codes here.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from workflow_telemetry import __version__
from workflow_telemetry.contracts.context import InvocationContext
from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.errors import InvocationContextError, NoJobsFoundError, RunDataError
from workflow_telemetry.core.config import (
    TelemetrySettings,
    load_settings,
    parse_custom_attributes,
    redacted_settings,
)
from workflow_telemetry.core.logging import get_logger
from workflow_telemetry.engine.collector import collect_metrics
from workflow_telemetry.engine.orchestrator import export_run
from workflow_telemetry.github.client import GitHubRunDataSource
from workflow_telemetry.telemetry.errors import TelemetryExporterError
from workflow_telemetry.telemetry.factory import create_exporter

__all__ = ["app"]

logger = get_logger(__name__)

app = typer.Typer(
    name="workflow-telemetry",
    help="Export CI workflow job metrics, traces and logs.",
    no_args_is_help=True,
)

_SETTINGS_HELP = "Path to settings YAML file (WORKFLOW_TELEMETRY_* env vars override it)."


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"workflow-telemetry {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Populate os.environ from a dotenv file without overriding set values.

    An explicit ``env_file`` must exist; otherwise python-dotenv searches
    upward from the working directory. Returns whether a file was loaded.
    """
    from dotenv import load_dotenv

    if env_file is None:
        return load_dotenv(override=False)
    if not env_file.is_file():
        typer.secho(f"Error: env file {env_file} does not exist", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return load_dotenv(env_file, override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Print the installed version.",
    ),
    no_dotenv: bool = typer.Option(False, "--no-dotenv", help="Do not read a .env file."),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Read this dotenv file instead of searching for .env.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Write logs to stderr as JSON lines."),
) -> None:
    """Export CI workflow job telemetry from a post-job hook."""
    from workflow_telemetry.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if no_dotenv:
        if env_file is not None:
            typer.secho("Warning: --no-dotenv set, ignoring --env-file.", fg=typer.colors.YELLOW, err=True)
        return
    _load_dotenv(env_file=env_file)


def _load_settings_or_exit(settings: Path | None) -> TelemetrySettings:
    settings_path = settings.expanduser() if settings is not None else None
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _context_or_exit() -> InvocationContext:
    try:
        return InvocationContext.from_environment(os.environ)
    except InvocationContextError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _token_or_exit(token: str | None) -> str:
    if not token:
        typer.echo("Error: a GitHub token is required (--token or GITHUB_TOKEN).", err=True)
        raise typer.Exit(1)
    return token


@app.command()
def export(
    settings: Path | None = typer.Option(None, "--settings", "-s", help=_SETTINGS_HELP),
    token: str | None = typer.Option(
        None,
        "--token",
        envvar="GITHUB_TOKEN",
        help="GitHub token with actions:read (defaults to GITHUB_TOKEN).",
        show_default=False,
    ),
    attributes: str | None = typer.Option(
        None,
        "--attributes",
        help="Custom attributes as a YAML mapping, e.g. 'team: platform'.",
    ),
) -> None:
    """Collect the current job's telemetry and export it (post-job hook)."""
    config = _load_settings_or_exit(settings)
    if attributes:
        config = config.model_copy(
            update={"custom_attributes": {**config.custom_attributes, **parse_custom_attributes(attributes)}}
        )
    context = _context_or_exit()
    github_token = _token_or_exit(token)

    try:
        exporter = create_exporter(config, run_id=context.run_id)
    except TelemetryExporterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    try:
        with GitHubRunDataSource(github_token, base_url=context.api_url) as source:
            outcome = export_run(config, context, source, exporter)
    except Exception as e:
        # Only reached with fail_on_error: export_run already closed the exporter
        typer.echo(f"Error: telemetry export failed: {e}", err=True)
        raise typer.Exit(1) from None

    if not outcome.succeeded:
        typer.secho(
            f"Warning: telemetry export failed (continuing): {outcome.error}",
            fg=typer.colors.YELLOW,
            err=True,
        )
        return
    if not outcome.flushed:
        typer.secho(
            "Warning: exporter did not confirm the final flush; some telemetry may be missing.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    job_name = outcome.record.job.name if outcome.record is not None else context.job_base_name
    typer.echo(f"Exported telemetry for job '{job_name}' via {config.exporter.name}.")


@app.command()
def validate(
    settings: Path | None = typer.Option(None, "--settings", "-s", help=_SETTINGS_HELP),
) -> None:
    """Validate settings and exporter configuration (pre-job check)."""
    config = _load_settings_or_exit(settings)
    try:
        exporter = create_exporter(config)
    except TelemetryExporterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    exporter.close()

    typer.echo(json.dumps(redacted_settings(config), indent=2, sort_keys=True))
    typer.echo(f"Configuration valid: exporter '{exporter.name}'.")


@app.command()
def show(
    settings: Path | None = typer.Option(None, "--settings", "-s", help=_SETTINGS_HELP),
    token: str | None = typer.Option(
        None,
        "--token",
        envvar="GITHUB_TOKEN",
        help="GitHub token with actions:read (defaults to GITHUB_TOKEN).",
        show_default=False,
    ),
) -> None:
    """Collect the current job's record and print it as JSON without exporting."""
    config = _load_settings_or_exit(settings)
    context = _context_or_exit()
    github_token = _token_or_exit(token)

    diagnostics = DiagnosticLog()
    try:
        with GitHubRunDataSource(github_token, base_url=context.api_url) as source:
            record = collect_metrics(
                source,
                context,
                include_artifacts=config.artifacts_enabled,
                custom_attributes=config.custom_attributes,
                diagnostics=diagnostics,
            )
    except (NoJobsFoundError, RunDataError) as e:
        diagnostics.emit(logger)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    diagnostics.emit(logger)

    typer.echo(json.dumps(record.to_dict(), indent=2))


if __name__ == "__main__":
    app()
