"""Test the bootstrap functions."""

from pathlib import Path

import pytest

from conceptual import config
from conceptual.adapters.store import InMemoryDocumentStore, SqlAlchemyDocumentStore
from conceptual.bootstrap import (
    AppContainer,
    bind_concepts,
    bootstrap,
    build_store,
    load_concept_types,
)
from conceptual.concepts.commenting import Commenting
from conceptual.concepts.labeling import Labeling

# pylint: disable=redefined-outer-name

MODULES = ("conceptual.concepts.labeling", "conceptual.concepts.commenting")


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'concepts.db'}"


class TestBuildStore:
    """Tests for the build_store function."""

    @staticmethod
    def test_memory_url():
        assert isinstance(build_store("memory://"), InMemoryDocumentStore)

    @staticmethod
    def test_memory_stores_are_independent():
        """Each memory:// store starts empty."""
        first = build_store("memory://")
        first.collection("Test.docs").insert_one({"_id": "a"})
        assert build_store("memory://").namespaces() == []

    @staticmethod
    def test_sqlalchemy_url(sqlite_url):
        store = build_store(sqlite_url)
        assert isinstance(store, SqlAlchemyDocumentStore)
        assert store.engine.url.database.endswith("concepts.db")


class TestLoadConceptTypes:
    """Tests for the load_concept_types function."""

    @staticmethod
    def test_returns_concepts_defined_in_module():
        assert load_concept_types("conceptual.concepts.labeling") == [Labeling]

    @staticmethod
    def test_ignores_imported_concepts():
        """The Concept base imported by every concept module is not returned."""
        assert load_concept_types("conceptual.service_layer") == []

    @staticmethod
    def test_unknown_module():
        with pytest.raises(ModuleNotFoundError):
            load_concept_types("conceptual.concepts.nope")


class TestBindConcepts:
    """Tests for the bind_concepts function."""

    @staticmethod
    def test_binds_by_concept_name(caplog):
        store = InMemoryDocumentStore()
        with caplog.at_level("INFO", logger="conceptual.bootstrap.bootstrap"):
            concepts = bind_concepts(store, [Labeling, Commenting])

        assert set(concepts) == {"Labeling", "Commenting"}
        assert isinstance(concepts["Labeling"], Labeling)
        assert concepts["Commenting"].store is store
        assert "Bound concept Labeling" in caplog.messages
        assert store.namespaces() == [
            "Commenting.comments",
            "Commenting.threads",
            "Labeling.items",
            "Labeling.labels",
        ]


class TestBootstrap:
    """Tests for the bootstrap function."""

    @staticmethod
    def test_returns_app_container(monkeypatch):
        monkeypatch.setenv(config.DB_URL_ENVVAR, "memory://")

        app = bootstrap(MODULES)

        assert isinstance(app, AppContainer)
        assert isinstance(app.store, InMemoryDocumentStore)
        assert sorted(app.concepts) == ["Commenting", "Labeling"]

    @staticmethod
    def test_without_modules_binds_nothing(monkeypatch):
        monkeypatch.setenv(config.DB_URL_ENVVAR, "memory://")
        assert bootstrap().concepts == {}

    @staticmethod
    def test_requires_db_url(monkeypatch):
        monkeypatch.delenv(config.DB_URL_ENVVAR, raising=False)
        with pytest.raises(config.DatabaseUrlNotSetError):
            bootstrap(MODULES)

    @staticmethod
    def test_state_survives_restart(monkeypatch, sqlite_url):
        """A second bootstrap against the same database sees earlier writes."""
        monkeypatch.setenv(config.DB_URL_ENVVAR, sqlite_url)

        first = bootstrap(MODULES)
        first.concepts["Labeling"].create_label(name="urgent")
        first.store.engine.dispose()  # type: ignore[attr-defined]

        second = bootstrap(MODULES)
        labeling = second.concepts["Labeling"]
        # pylint: disable=protected-access
        assert [lbl["name"] for lbl in labeling._labels()] == ["urgent"]
        assert labeling.create_label(name="urgent") == {"error": "label already exists"}
        second.store.engine.dispose()  # type: ignore[attr-defined]
