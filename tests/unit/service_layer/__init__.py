"""Unit tests for `conceptual.service_layer`."""
