"""Unit tests for `conceptual.adapters`."""
