# tests/property/__init__.py
"""Property-based tests for workflow-telemetry.

Test categories:
- core/: Step durations, conclusion inference, job resolution
"""
