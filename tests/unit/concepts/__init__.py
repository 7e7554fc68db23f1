"""Unit tests for `conceptual.concepts`."""
