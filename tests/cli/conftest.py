# tests/cli/conftest.py
"""Shared fixtures for CLI tests."""

import logging

import pytest

RUN_ENV = {
    "GITHUB_REPOSITORY": "octo/hello",
    "GITHUB_RUN_ID": "4242",
    "GITHUB_RUN_NUMBER": "7",
    "GITHUB_WORKFLOW": "CI",
    "GITHUB_JOB": "build",
    "RUNNER_NAME": "GitHub Actions 1",
    "RUNNER_OS": "Linux",
    "RUNNER_ARCH": "X64",
}

_CLEARED = ("GITHUB_TOKEN", "GITHUB_EVENT_PATH", "GITHUB_API_URL", "GITHUB_WORKFLOW_REF")


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """configure_logging() binds a handler to the runner's stderr; undo it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def run_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Workflow-runner environment for the invoking job."""
    for name in _CLEARED:
        monkeypatch.delenv(name, raising=False)
    for name, value in RUN_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(RUN_ENV)
