# src/workflow_telemetry/github/client.py
"""GitHub REST adapter implementing RunDataSourceProtocol.

Single attempt per call, no retries. The job listing is the only call
whose failure is fatal; artifacts, repository metadata and job logs
degrade to "not available" because they are optional decoration of the
record.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import structlog

from workflow_telemetry.contracts.context import DEFAULT_API_URL
from workflow_telemetry.contracts.errors import RunDataError
from workflow_telemetry.contracts.records import ArtifactInfo, RawJob, RawStep
from workflow_telemetry.core.timestamps import parse_timestamp

logger = structlog.get_logger(__name__)

API_VERSION = "2022-11-28"
PAGE_SIZE = 100


def _parse_step(payload: dict[str, Any]) -> RawStep:
    return RawStep(
        name=str(payload.get("name") or ""),
        number=int(payload.get("number") or 0),
        status=str(payload.get("status") or ""),
        conclusion=payload.get("conclusion"),
        started_at=payload.get("started_at"),
        completed_at=payload.get("completed_at"),
    )


def _parse_job(payload: dict[str, Any]) -> RawJob:
    return RawJob(
        id=int(payload["id"]),
        name=str(payload.get("name") or ""),
        status=str(payload.get("status") or ""),
        conclusion=payload.get("conclusion"),
        started_at=payload.get("started_at"),
        completed_at=payload.get("completed_at"),
        steps=tuple(_parse_step(step) for step in payload.get("steps") or ()),
        runner_name=payload.get("runner_name") or None,
        labels=tuple(str(label) for label in payload.get("labels") or ()),
    )


def _parse_artifact(payload: dict[str, Any]) -> ArtifactInfo:
    return ArtifactInfo(
        name=str(payload.get("name") or ""),
        size_bytes=int(payload.get("size_in_bytes") or 0),
        expired=bool(payload.get("expired", False)),
        created_at=parse_timestamp(payload.get("created_at")),
        expires_at=parse_timestamp(payload.get("expires_at")),
    )


class GitHubRunDataSource:
    """Workflow-run data from the GitHub REST API.

    Example:
        with GitHubRunDataSource(token, base_url=context.api_url) as source:
            jobs = source.list_jobs("octo", "hello", 42)
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            token: GitHub token with actions:read and contents:read
            base_url: API root (GITHUB_API_URL on GitHub Enterprise)
            timeout: Per-request timeout in seconds
            client: Pre-built client (tests pass one with a MockTransport).
                A supplied client is not closed by close().
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if client is None:
            self._client = httpx.Client(
                base_url=base_url,
                headers=headers,
                timeout=timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        else:
            client.headers.update(headers)
            self._client = client
            self._owns_client = False

    def __enter__(self) -> GitHubRunDataSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _get_json(self, operation: str, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RunDataError(
                operation,
                f"HTTP {e.response.status_code} from {path}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RunDataError(operation, f"{type(e).__name__}: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise RunDataError(operation, f"invalid JSON from {path}") from e

    def _paginate(self, operation: str, path: str, key: str) -> Iterator[dict[str, Any]]:
        """Items under ``key`` across every page of a list endpoint.

        Stops on a short page or once ``total_count`` items were seen.

        Raises:
            RunDataError: On a failed request or a body of the wrong shape
        """
        page = 1
        seen = 0
        while True:
            data = self._get_json(operation, path, {"per_page": PAGE_SIZE, "page": page})
            if not isinstance(data, dict):
                raise RunDataError(operation, f"expected a JSON object from {path}, got {type(data).__name__}")
            batch = data.get(key) or []
            if not isinstance(batch, list) or not all(isinstance(item, dict) for item in batch):
                raise RunDataError(operation, f"'{key}' from {path} is not a list of objects")
            yield from batch
            seen += len(batch)
            total = data.get("total_count")
            if len(batch) < PAGE_SIZE or (isinstance(total, int) and seen >= total):
                return
            page += 1

    def list_jobs(self, owner: str, repo: str, run_id: int) -> list[RawJob]:
        """Every job of the run, following pagination.

        Raises:
            RunDataError: On any transport, HTTP, decoding or payload-shape failure
        """
        path = f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs"
        jobs: list[RawJob] = []
        for payload in self._paginate("list_jobs", path, "jobs"):
            try:
                jobs.append(_parse_job(payload))
            except (KeyError, TypeError, ValueError) as e:
                raise RunDataError("list_jobs", f"malformed job entry from {path}: {type(e).__name__}: {e}") from e
        logger.debug("jobs_listed", run_id=run_id, count=len(jobs))
        return jobs

    def list_artifacts(self, owner: str, repo: str, run_id: int) -> list[ArtifactInfo]:
        """The run's artifacts across all pages; [] when listing fails or none exist yet."""
        path = f"/repos/{owner}/{repo}/actions/runs/{run_id}/artifacts"
        try:
            artifacts = [_parse_artifact(item) for item in self._paginate("list_artifacts", path, "artifacts")]
        except (RunDataError, TypeError, ValueError) as e:
            logger.warning(
                "artifact_listing_failed",
                run_id=run_id,
                error=str(e),
                hint="Artifacts may not be available while the workflow is still in progress",
            )
            return []

        if artifacts:
            for artifact in artifacts:
                logger.info(
                    "artifact_found",
                    name=artifact.name,
                    size_bytes=artifact.size_bytes,
                    expired=artifact.expired,
                )
        else:
            logger.info("no_artifacts_found", run_id=run_id)
        return artifacts

    def get_repository_size(self, owner: str, repo: str) -> int | None:
        """Repository size in KB, or None if it cannot be fetched."""
        try:
            data = self._get_json("get_repository", f"/repos/{owner}/{repo}")
        except RunDataError as e:
            logger.debug("repository_size_unavailable", error=str(e))
            return None
        size = data.get("size") if isinstance(data, dict) else None
        if isinstance(size, int) and not isinstance(size, bool):
            logger.debug("repository_size", size_kb=size)
            return size
        return None

    def get_job_logs(self, owner: str, repo: str, job_id: int) -> str | None:
        """Plain-text log of one job, or None if it cannot be downloaded."""
        path = f"/repos/{owner}/{repo}/actions/jobs/{job_id}/logs"
        try:
            response = self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("job_logs_unavailable", job_id=job_id, error=f"{type(e).__name__}: {e}")
            return None
        return response.text
