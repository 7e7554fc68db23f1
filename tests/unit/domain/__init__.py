"""Unit tests for `conceptual.domain`."""
