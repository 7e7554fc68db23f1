"""Unit tests for `conceptual.isolation`."""
