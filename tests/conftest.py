# tests/conftest.py
"""Shared fixtures.

Hypothesis profiles are picked with HYPOTHESIS_PROFILE: ``ci`` (default),
``nightly`` for long runs and ``debug`` for a handful of verbose examples.
"""

import os
from datetime import UTC, datetime

import pytest
import structlog
from hypothesis import Verbosity, settings

from tests.fixtures.records import make_context, make_record

for _profile, _examples in (("ci", 100), ("nightly", 1000)):
    settings.register_profile(_profile, max_examples=_examples, deadline=None)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose, deadline=None)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo logging configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 10, 0, tzinfo=UTC)


@pytest.fixture
def context():
    return make_context()


@pytest.fixture
def record():
    return make_record()
