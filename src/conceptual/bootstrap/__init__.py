"""Bootstrap (composition root) for conceptual.

Assembles the runtime: reads configuration, builds the shared document store,
and binds concept classes to it.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `conceptual.adapters`, `conceptual.service_layer`,
  `conceptual.interfaces`, `conceptual.domain`, and `conceptual.config`.
- Inner layers must not import `conceptual.bootstrap`.
"""

from .bootstrap import (
    AppContainer,
    bind_concepts,
    bootstrap,
    build_store,
    load_concept_types,
)

__all__ = [
    "AppContainer",
    "bind_concepts",
    "bootstrap",
    "build_store",
    "load_concept_types",
]
