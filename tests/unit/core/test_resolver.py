# tests/unit/core/test_resolver.py
"""Tests for job resolution, including matrix-leg disambiguation."""

import pytest

from tests.fixtures.records import make_job
from workflow_telemetry.contracts.diagnostics import DiagnosticLog
from workflow_telemetry.contracts.errors import NoJobsFoundError
from workflow_telemetry.core.resolver import is_matrix_leg, resolve_job


class TestIsMatrixLeg:
    @pytest.mark.parametrize(
        ("job_name", "expected"),
        [
            ("build (ubuntu-latest, 3.12)", True),
            ("build (x)", True),
            ("build", False),
            ("build ()", False),
            ("builder (x)", False),
            ("build (x", False),
            ("test (x)", False),
        ],
    )
    def test_pattern(self, job_name: str, expected: bool) -> None:
        assert is_matrix_leg(job_name, "build") is expected


class TestResolveJob:
    """The fallback chain: exact, single matrix, disambiguation, first job."""

    def test_empty_job_list_raises(self) -> None:
        with pytest.raises(NoJobsFoundError, match="No jobs found for workflow run 42"):
            resolve_job([], "build", run_id=42)

    def test_empty_job_list_without_run_id(self) -> None:
        with pytest.raises(NoJobsFoundError, match="No jobs found for this workflow run"):
            resolve_job([], "build")

    def test_exact_match(self) -> None:
        jobs = [make_job(1, "lint"), make_job(2, "build")]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", diagnostics=diagnostics).id == 2
        assert diagnostics.events() == ["job_exact_match"]

    def test_exact_match_wins_over_matrix_match(self) -> None:
        jobs = [make_job(1, "build (a)"), make_job(2, "build"), make_job(3, "build (b)")]
        assert resolve_job(jobs, "build", "runner-for-a").id == 2

    def test_single_matrix_match(self) -> None:
        jobs = [make_job(1, "lint"), make_job(2, "build (ubuntu-latest)")]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", diagnostics=diagnostics).id == 2
        assert diagnostics.events("info") == ["matrix_job_matched"]

    def test_runner_identity_disambiguates(self) -> None:
        jobs = [
            make_job(1, "build (a)", runner_name="runner-a", started_at="2024-05-01T12:09:00Z"),
            make_job(2, "build (b)", runner_name="runner-b", started_at="2024-05-01T12:00:00Z"),
        ]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", "runner-b", diagnostics=diagnostics).id == 2
        assert "matrix_job_matched_by_runner" in diagnostics.events("info")

    def test_runner_identity_beats_in_progress(self) -> None:
        jobs = [
            make_job(1, "build (a)", status="in_progress", runner_name="runner-a"),
            make_job(2, "build (b)", status="completed", runner_name="runner-b"),
        ]
        assert resolve_job(jobs, "build", "runner-b").id == 2

    def test_in_progress_when_runner_does_not_match(self) -> None:
        jobs = [
            make_job(1, "build (a)", status="completed", runner_name="runner-a"),
            make_job(2, "build (b)", status="in_progress", runner_name="runner-b"),
        ]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", "runner-z", diagnostics=diagnostics).id == 2
        assert "matrix_runner_not_matched" in diagnostics.events("debug")
        assert diagnostics.events("warning") == ["matrix_job_ambiguous_using_in_progress"]

    def test_in_progress_when_runner_identity_missing(self) -> None:
        jobs = [
            make_job(1, "build (a)", status="completed"),
            make_job(2, "build (b)", status="in_progress"),
        ]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", None, diagnostics=diagnostics).id == 2
        assert "matrix_runner_identity_missing" in diagnostics.events("debug")

    def test_most_recent_start_as_last_resort(self) -> None:
        jobs = [
            make_job(1, "build (a)", started_at="2024-05-01T12:00:00Z"),
            make_job(2, "build (b)", started_at="2024-05-01T12:05:00Z"),
            make_job(3, "build (c)", started_at="2024-05-01T12:03:00Z"),
        ]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "build", diagnostics=diagnostics).id == 2
        assert diagnostics.events("warning") == ["matrix_job_ambiguous_using_most_recent"]

    def test_most_recent_tie_keeps_api_order(self) -> None:
        jobs = [
            make_job(1, "build (a)", started_at="2024-05-01T12:00:00Z"),
            make_job(2, "build (b)", started_at="2024-05-01T12:00:00Z"),
        ]
        assert resolve_job(jobs, "build").id == 1

    def test_missing_start_sorts_last(self) -> None:
        jobs = [
            make_job(1, "build (a)", started_at=None),
            make_job(2, "build (b)", started_at="2024-05-01T12:00:00Z"),
        ]
        assert resolve_job(jobs, "build").id == 2

    def test_no_name_match_falls_back_to_first_job(self) -> None:
        jobs = [make_job(7, "lint"), make_job(8, "test")]
        diagnostics = DiagnosticLog()
        assert resolve_job(jobs, "deploy", diagnostics=diagnostics).id == 7
        assert diagnostics.events("warning") == ["job_not_found_using_first"]

    def test_diagnostics_do_not_change_result(self) -> None:
        jobs = [make_job(1, "build (a)"), make_job(2, "build (b)", status="in_progress")]
        assert resolve_job(jobs, "build") == resolve_job(jobs, "build", diagnostics=DiagnosticLog())
