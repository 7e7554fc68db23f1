"""CONCEPTUAL

A runtime for strictly isolated units of application state ("concepts").
Each concept owns a private persistent state and exposes it only through
actions (mutations returning a single record) and queries (read-only
projections returning sequences).
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
