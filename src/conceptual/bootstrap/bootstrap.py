"""Build the document store and bind concepts to it."""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from conceptual import config
from conceptual.adapters.db.engine import make_engine
from conceptual.adapters.store import InMemoryDocumentStore, SqlAlchemyDocumentStore
from conceptual.interfaces.store import DocumentStore
from conceptual.service_layer import Concept

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """The shared store and the concepts bound to it, by concept name."""

    store: DocumentStore
    concepts: dict[str, Concept] = field(default_factory=dict)


def build_store(url: str) -> DocumentStore:
    """Build the document store selected by `url`.

    Args:
        url: `memory://` for a fresh in-memory store, otherwise a SQLAlchemy
            database URL.
    """
    if config.is_memory_url(url):
        logger.debug("Using the in-memory document store")
        return InMemoryDocumentStore()
    engine = make_engine(url)
    logger.debug("Using a %s document store", engine.dialect.name)
    return SqlAlchemyDocumentStore(engine)


def load_concept_types(module_name: str) -> list[type[Concept]]:
    """Import `module_name` and return the concept classes it defines.

    Classes merely imported into the module are ignored, so a package
    ``__init__`` re-exporting its concepts yields nothing; name the concept
    modules themselves.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
    """
    module = importlib.import_module(module_name)
    return [
        obj
        for _, obj in inspect.getmembers(module, inspect.isclass)
        if issubclass(obj, Concept)
        and obj is not Concept
        and obj.__module__ == module.__name__
    ]


def bind_concepts(
    store: DocumentStore, concept_types: Iterable[type[Concept]]
) -> dict[str, Concept]:
    """Instantiate each concept class against `store`, keyed by concept name."""
    concepts: dict[str, Concept] = {}
    for concept_type in concept_types:
        concepts[concept_type.name] = concept_type(store)
        logger.info("Bound concept %s", concept_type.name)
    return concepts


def bootstrap(module_names: Iterable[str] = ()) -> AppContainer:
    """Build the configured store and bind the concepts of `module_names`.

    Raises:
        DatabaseUrlNotSetError: If `CONCEPTUAL_DB_URL` is not set.
    """
    store = build_store(config.get_db_url())
    concept_types = [
        concept_type
        for module_name in module_names
        for concept_type in load_concept_types(module_name)
    ]
    return AppContainer(store=store, concepts=bind_concepts(store, concept_types))
