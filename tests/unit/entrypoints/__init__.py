"""Unit tests for `conceptual.entrypoints`."""
