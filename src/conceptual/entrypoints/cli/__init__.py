"""The ``conceptual`` command-line interface."""
