# src/workflow_telemetry/contracts/context.py
"""Invocation context: everything the exporter knows about "where am I".

The workflow runner exposes run identity through environment variables.
InvocationContext.from_environment() is the only place those variables are
read; the result is passed explicitly down the pipeline, so nothing below
the process boundary touches os.environ.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from workflow_telemetry.contracts.errors import InvocationContextError

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True, slots=True)
class InvocationContext:
    """Identity of the run, the repository and the invoking job.

    Attributes:
        workflow: Display name of the workflow, if the runner exposed one
        workflow_ref: Fully qualified "owner/repo/path@ref" reference
        job_base_name: The invoking job's declared name. For matrix jobs
            this is the unparameterized base shared by every leg.
        runner_identity: Name of the runner executing this process. The
            only signal that tells concurrent matrix legs apart.
        pr_number: Pull request number from the event payload, if any
    """

    owner: str
    repo: str
    run_id: int
    run_number: int = 0
    run_attempt: int = 1
    workflow: str | None = None
    workflow_ref: str | None = None
    sha: str = ""
    ref: str = ""
    ref_name: str | None = None
    base_ref: str | None = None
    head_ref: str | None = None
    event_name: str = ""
    actor: str = ""
    pr_number: int | None = None
    runner_os: str = "unknown"
    runner_arch: str = "unknown"
    runner_name: str | None = None
    job_base_name: str = ""
    runner_identity: str | None = None
    api_url: str = DEFAULT_API_URL

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_environment(cls, environ: Mapping[str, str]) -> InvocationContext:
        """Build the context from workflow-runner environment variables.

        Args:
            environ: Environment mapping (normally os.environ)

        Raises:
            InvocationContextError: If GITHUB_REPOSITORY or GITHUB_RUN_ID is
                missing or malformed
        """

        def get(name: str) -> str | None:
            value = environ.get(name)
            if value is None or value.strip() == "":
                return None
            return value

        repository = get("GITHUB_REPOSITORY")
        if repository is None or "/" not in repository:
            raise InvocationContextError(f"GITHUB_REPOSITORY must be 'owner/name', got {repository!r}")
        owner, _, repo = repository.partition("/")

        run_id_raw = get("GITHUB_RUN_ID")
        if run_id_raw is None:
            raise InvocationContextError("GITHUB_RUN_ID is not set")
        try:
            run_id = int(run_id_raw)
        except ValueError:
            raise InvocationContextError(f"GITHUB_RUN_ID must be an integer, got {run_id_raw!r}") from None

        runner_name = get("RUNNER_NAME")
        return cls(
            owner=owner,
            repo=repo,
            run_id=run_id,
            run_number=_int_or(get("GITHUB_RUN_NUMBER"), 0),
            run_attempt=_int_or(get("GITHUB_RUN_ATTEMPT"), 1),
            workflow=get("GITHUB_WORKFLOW"),
            workflow_ref=get("GITHUB_WORKFLOW_REF"),
            sha=get("GITHUB_SHA") or "",
            ref=get("GITHUB_REF") or "",
            ref_name=get("GITHUB_REF_NAME"),
            base_ref=get("GITHUB_BASE_REF"),
            head_ref=get("GITHUB_HEAD_REF"),
            event_name=get("GITHUB_EVENT_NAME") or "",
            actor=get("GITHUB_ACTOR") or "",
            pr_number=_pr_number_from_event(get("GITHUB_EVENT_PATH")),
            runner_os=get("RUNNER_OS") or "unknown",
            runner_arch=get("RUNNER_ARCH") or "unknown",
            runner_name=runner_name,
            job_base_name=get("GITHUB_JOB") or "",
            runner_identity=runner_name,
            api_url=get("GITHUB_API_URL") or DEFAULT_API_URL,
        )


def _int_or(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _pr_number_from_event(event_path: str | None) -> int | None:
    """Read pull_request.number from the event payload file, if present."""
    if event_path is None:
        return None
    try:
        payload: Any = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("event_payload_unreadable", path=event_path, error=str(e))
        return None

    if not isinstance(payload, dict):
        return None
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, dict):
        return None
    number = pull_request.get("number")
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None
