"""Concepts shipped with conceptual.

Each module in this package is one concept and must not import, name, or
address the storage of any other; `conceptual check` enforces this.
"""
