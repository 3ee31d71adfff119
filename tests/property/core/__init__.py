# tests/property/core/__init__.py
"""Property tests for the reconstruction core."""
