# tests/unit/core/test_config.py
"""Tests for settings validation, loading and redaction."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from workflow_telemetry.core.config import (
    ExporterSettings,
    TelemetrySettings,
    load_settings,
    parse_custom_attributes,
    redacted_settings,
)


class TestParseCustomAttributes:
    def test_mapping(self) -> None:
        assert parse_custom_attributes("team: platform\ntier: 1") == {"team": "platform", "tier": "1"}

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_input(self, text: str | None) -> None:
        assert parse_custom_attributes(text) == {}

    def test_null_values_dropped(self) -> None:
        assert parse_custom_attributes("team: platform\nowner:") == {"team": "platform"}

    def test_non_mapping_warns_and_returns_empty(self) -> None:
        with capture_logs() as logs:
            assert parse_custom_attributes("- a\n- b") == {}
        warning = next(entry for entry in logs if entry["event"] == "custom_attributes_invalid")
        assert warning["log_level"] == "warning"
        assert "must be a YAML object" in warning["error"]

    def test_invalid_yaml_warns_and_returns_empty(self) -> None:
        with capture_logs() as logs:
            assert parse_custom_attributes("team: [unclosed") == {}
        assert [entry["event"] for entry in logs] == ["custom_attributes_invalid"]
        assert logs[0]["error"].startswith("Failed to parse custom attributes")


class TestTelemetrySettings:
    def test_defaults(self) -> None:
        settings = TelemetrySettings()
        assert settings.metric_prefix == "github.actions"
        assert settings.exporter.name == "console"
        assert settings.metrics_enabled and settings.traces_enabled and settings.logs_enabled
        assert settings.artifacts_enabled is True
        assert settings.detailed_logs is False
        assert settings.fail_on_error is False

    @pytest.mark.parametrize("prefix", ["ci", "github.actions", "org_1.ci.jobs"])
    def test_valid_metric_prefix(self, prefix: str) -> None:
        assert TelemetrySettings(metric_prefix=prefix).metric_prefix == prefix

    @pytest.mark.parametrize("prefix", ["", "github..actions", ".github", "github-actions", "1ci"])
    def test_invalid_metric_prefix(self, prefix: str) -> None:
        with pytest.raises(ValidationError):
            TelemetrySettings(metric_prefix=prefix)

    def test_custom_attributes_from_yaml_string(self) -> None:
        settings = TelemetrySettings(custom_attributes="team: platform")
        assert settings.custom_attributes == {"team": "platform"}

    def test_custom_attribute_values_stringified(self) -> None:
        settings = TelemetrySettings(custom_attributes={"tier": 1, "gone": None})
        assert settings.custom_attributes == {"tier": "1"}

    def test_settings_frozen(self) -> None:
        settings = TelemetrySettings()
        with pytest.raises(ValidationError):
            settings.metric_prefix = "other"  # type: ignore[misc]

    def test_blank_exporter_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExporterSettings(name="  ")


class TestRedactedSettings:
    def test_secret_options_redacted(self) -> None:
        settings = TelemetrySettings(
            exporter=ExporterSettings(
                name="otlp",
                options={
                    "endpoint": "https://otel.example.com",
                    "headers": {"Authorization": "Bearer abc", "X-Scope": "ci"},
                    "credentials_json": "{}",
                    "api_key": "k",
                },
            )
        )
        options = redacted_settings(settings)["exporter"]["options"]
        assert options["endpoint"] == "https://otel.example.com"
        assert options["headers"] == {"Authorization": "[REDACTED]", "X-Scope": "ci"}
        assert options["credentials_json"] == "[REDACTED]"
        assert options["api_key"] == "[REDACTED]"


class TestLoadSettings:
    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_env_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORKFLOW_TELEMETRY_METRIC_PREFIX", "ci.jobs")
        monkeypatch.setenv("WORKFLOW_TELEMETRY_FAIL_ON_ERROR", "true")
        settings = load_settings()
        assert settings.metric_prefix == "ci.jobs"
        assert settings.fail_on_error is True

    def test_yaml_file_with_env_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTEL_TOKEN", "s3cret")
        monkeypatch.delenv("OTEL_ENDPOINT", raising=False)
        config_file = tmp_path / "telemetry.yaml"
        config_file.write_text(
            "metric_prefix: ci\n"
            "detailed_logs: true\n"
            "exporter:\n"
            "  name: otlp\n"
            "  options:\n"
            "    endpoint: ${OTEL_ENDPOINT:-http://localhost:4317}\n"
            "    headers:\n"
            "      Authorization: Bearer ${OTEL_TOKEN}\n"
            "custom_attributes:\n"
            "  team: platform\n"
        )
        settings = load_settings(config_file)
        assert settings.metric_prefix == "ci"
        assert settings.detailed_logs is True
        assert settings.exporter.name == "otlp"
        assert settings.exporter.options["endpoint"] == "http://localhost:4317"
        assert settings.exporter.options["headers"] == {"Authorization": "Bearer s3cret"}
        assert settings.custom_attributes == {"team": "platform"}

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "telemetry.yaml"
        config_file.write_text("metric_prefix: from_file\n")
        monkeypatch.setenv("WORKFLOW_TELEMETRY_METRIC_PREFIX", "from_env")
        assert load_settings(config_file).metric_prefix == "from_env"

    def test_invalid_values_raise_validation_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "telemetry.yaml"
        config_file.write_text("metric_prefix: 'not valid!'\n")
        with pytest.raises(ValidationError):
            load_settings(config_file)
