# src/workflow_telemetry/core/config.py
"""
Configuration schema and loading for the workflow telemetry exporter.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)

ENVVAR_PREFIX = "WORKFLOW_TELEMETRY"

_METRIC_PREFIX_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

# Exporter option keys containing any of these are never logged or printed
_SECRET_KEY_MARKERS = ("key", "token", "secret", "credential", "authorization", "password")


def parse_custom_attributes(text: str | None) -> dict[str, str]:
    """Parse a YAML mapping of custom attributes.

    Custom attributes are decoration, so bad input never fails the run:
    invalid YAML or a non-mapping document logs a warning and yields {}.

    Args:
        text: YAML text such as "team: platform\\nenv: prod"

    Returns:
        Attribute names mapped to string values
    """
    if text is None or text == "":
        return {}
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("custom_attributes_invalid", error=f"Failed to parse custom attributes: {e}")
        return {}
    if not isinstance(parsed, dict):
        logger.warning(
            "custom_attributes_invalid",
            error="Failed to parse custom attributes: must be a YAML object",
            got=type(parsed).__name__,
        )
        return {}
    attributes = {str(key): str(value) for key, value in parsed.items() if value is not None}
    logger.info("custom_attributes_parsed", count=len(attributes))
    return attributes


class ExporterSettings(BaseModel):
    """Which telemetry backend to use and its backend-specific options."""

    model_config = {"frozen": True}

    name: str = Field(default="console", description="Registered exporter name (console, otlp, gcp)")
    options: dict[str, Any] = Field(default_factory=dict, description="Exporter-specific options")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("exporter name must not be empty")
        return v.strip()


class TelemetrySettings(BaseModel):
    """Top-level exporter configuration."""

    model_config = {"frozen": True}

    metric_prefix: str = Field(default="github.actions", description="Prefix for every metric name")
    service_name: str = Field(default="github-actions", description="service.name resource attribute")
    service_namespace: str = Field(default="ci", description="service.namespace resource attribute")
    exporter: ExporterSettings = Field(default_factory=ExporterSettings)
    metrics_enabled: bool = True
    traces_enabled: bool = True
    logs_enabled: bool = True
    artifacts_enabled: bool = Field(default=True, description="List run artifacts for artifact metrics")
    detailed_logs: bool = Field(default=False, description="Download job logs instead of summary entries")
    fail_on_error: bool = Field(
        default=False,
        description="Fail the job when export fails (default: log and continue)",
    )
    custom_attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("metric_prefix")
    @classmethod
    def validate_metric_prefix(cls, v: str) -> str:
        if not _METRIC_PREFIX_PATTERN.match(v):
            raise ValueError(f"metric_prefix must be dot-separated identifiers, got {v!r}")
        return v

    @field_validator("custom_attributes", mode="before")
    @classmethod
    def coerce_custom_attributes(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, str):
            return parse_custom_attributes(v)
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items() if value is not None}
        return v


def _is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_KEY_MARKERS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: "[REDACTED]" if _is_secret_key(str(k)) else _redact(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def redacted_settings(settings: TelemetrySettings) -> dict[str, Any]:
    """Settings as a dict that is safe to log or print."""
    return _redact(settings.model_dump(mode="json"))


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        if match.group(2) is not None:
            return match.group(2)
        return match.group(0)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ENV_VAR_PATTERN.sub(replacer, value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_model_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Lower-case keys at the levels Pydantic validates.

    Dynaconf upper-cases top-level keys and keeps nested keys as written.
    Exporter options are left alone: header names and the like are
    case-sensitive.
    """
    result = {k.lower(): v for k, v in raw.items()}
    exporter = result.get("exporter")
    if isinstance(exporter, dict):
        result["exporter"] = {k.lower(): v for k, v in exporter.items()}
    return result


def load_settings(config_path: Path | None = None) -> TelemetrySettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (WORKFLOW_TELEMETRY_*) - highest priority
    2. Config file (if given)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: WORKFLOW_TELEMETRY_EXPORTER__NAME for nested keys.

    Args:
        config_path: Path to YAML configuration file, or None for env-only

    Returns:
        Validated TelemetrySettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(_lower_model_keys(raw_config))

    return TelemetrySettings(**raw_config)
