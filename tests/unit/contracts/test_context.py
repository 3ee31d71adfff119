# tests/unit/contracts/test_context.py
"""Tests for InvocationContext.from_environment."""

import json
from pathlib import Path

import pytest

from workflow_telemetry.contracts.context import DEFAULT_API_URL, InvocationContext
from workflow_telemetry.contracts.errors import InvocationContextError

BASE_ENV = {
    "GITHUB_REPOSITORY": "octo/hello",
    "GITHUB_RUN_ID": "4242",
    "GITHUB_RUN_NUMBER": "7",
    "GITHUB_RUN_ATTEMPT": "2",
    "GITHUB_WORKFLOW": "CI",
    "GITHUB_WORKFLOW_REF": "octo/hello/.github/workflows/ci.yml@refs/heads/main",
    "GITHUB_SHA": "abc123",
    "GITHUB_REF": "refs/heads/main",
    "GITHUB_REF_NAME": "main",
    "GITHUB_EVENT_NAME": "push",
    "GITHUB_ACTOR": "mona",
    "GITHUB_JOB": "build",
    "RUNNER_OS": "Linux",
    "RUNNER_ARCH": "X64",
    "RUNNER_NAME": "GitHub Actions 3",
}


class TestFromEnvironment:
    def test_full_environment(self) -> None:
        context = InvocationContext.from_environment(BASE_ENV)
        assert (context.owner, context.repo, context.full_name) == ("octo", "hello", "octo/hello")
        assert (context.run_id, context.run_number, context.run_attempt) == (4242, 7, 2)
        assert context.workflow == "CI"
        assert context.job_base_name == "build"
        assert context.runner_identity == "GitHub Actions 3"
        assert context.runner_name == "GitHub Actions 3"
        assert context.runner_os == "Linux"
        assert context.api_url == DEFAULT_API_URL
        assert context.pr_number is None

    def test_defaults_for_missing_optional_values(self) -> None:
        context = InvocationContext.from_environment({"GITHUB_REPOSITORY": "octo/hello", "GITHUB_RUN_ID": "1"})
        assert context.run_attempt == 1
        assert context.run_number == 0
        assert context.workflow is None
        assert context.runner_os == "unknown"
        assert context.runner_identity is None

    def test_empty_strings_are_absent(self) -> None:
        env = {**BASE_ENV, "GITHUB_BASE_REF": "", "GITHUB_HEAD_REF": "", "GITHUB_WORKFLOW": ""}
        context = InvocationContext.from_environment(env)
        assert context.base_ref is None
        assert context.head_ref is None
        assert context.workflow is None

    def test_enterprise_api_url(self) -> None:
        context = InvocationContext.from_environment({**BASE_ENV, "GITHUB_API_URL": "https://ghe.example.com/api/v3"})
        assert context.api_url == "https://ghe.example.com/api/v3"

    @pytest.mark.parametrize(
        "env",
        [
            {"GITHUB_RUN_ID": "1"},
            {"GITHUB_REPOSITORY": "no-slash", "GITHUB_RUN_ID": "1"},
            {"GITHUB_REPOSITORY": "octo/hello"},
            {"GITHUB_REPOSITORY": "octo/hello", "GITHUB_RUN_ID": "abc"},
        ],
    )
    def test_missing_run_identity_raises(self, env: dict[str, str]) -> None:
        with pytest.raises(InvocationContextError):
            InvocationContext.from_environment(env)

    def test_pr_number_from_event_payload(self, tmp_path: Path) -> None:
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"pull_request": {"number": 31}}))
        context = InvocationContext.from_environment({**BASE_ENV, "GITHUB_EVENT_PATH": str(event)})
        assert context.pr_number == 31

    def test_unreadable_event_payload_ignored(self, tmp_path: Path) -> None:
        event = tmp_path / "event.json"
        event.write_text("{not json")
        context = InvocationContext.from_environment({**BASE_ENV, "GITHUB_EVENT_PATH": str(event)})
        assert context.pr_number is None

    def test_missing_event_file_ignored(self, tmp_path: Path) -> None:
        env = {**BASE_ENV, "GITHUB_EVENT_PATH": str(tmp_path / "missing.json")}
        assert InvocationContext.from_environment(env).pr_number is None

    def test_push_payload_has_no_pr(self, tmp_path: Path) -> None:
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"ref": "refs/heads/main"}))
        assert InvocationContext.from_environment({**BASE_ENV, "GITHUB_EVENT_PATH": str(event)}).pr_number is None
