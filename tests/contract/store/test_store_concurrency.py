"""Concurrency contract tests for DocumentStore implementations.

Runs against backends that share state between threads (not in-memory
SQLite, where every thread sees its own database).
"""

from __future__ import annotations

import concurrent.futures as cf

import pytest

from conceptual.interfaces.store import DocumentStore, Update

WORKERS = 8
PER_WORKER = 25


@pytest.mark.slow
def test_concurrent_pushes_are_not_lost(shared_store: DocumentStore):
    """Concurrent single-document updates never overwrite each other."""
    docs = shared_store.collection("Test.docs")
    docs.insert_one({"_id": "counter", "seen": []})

    def _work(worker: int) -> None:
        for i in range(PER_WORKER):
            docs.update_one("counter", Update(push={"seen": f"{worker}:{i}"}))

    with cf.ThreadPoolExecutor(max_workers=WORKERS) as ex:
        list(ex.map(_work, range(WORKERS)))

    doc = docs.find_one({"_id": "counter"})
    assert doc is not None
    assert len(doc["seen"]) == WORKERS * PER_WORKER
    assert len(set(doc["seen"])) == WORKERS * PER_WORKER


@pytest.mark.slow
def test_concurrent_upserts_create_one_document(shared_store: DocumentStore):
    """Racing upserts of the same `_id` create it once and keep every value."""
    docs = shared_store.collection("Test.docs")

    def _work(worker: int) -> None:
        docs.update_one("item", Update(add_to_set={"labels": f"l{worker}"}), upsert=True)

    with cf.ThreadPoolExecutor(max_workers=WORKERS) as ex:
        list(ex.map(_work, range(WORKERS)))

    found = docs.find()
    assert len(found) == 1
    assert sorted(found[0]["labels"]) == sorted(f"l{w}" for w in range(WORKERS))


@pytest.mark.slow
def test_concurrent_transactions_are_all_or_nothing(shared_store: DocumentStore):
    """Transactions racing on two collections never leave them out of step."""
    left = shared_store.collection("Test.left")
    right = shared_store.collection("Test.right")

    def _work(worker: int) -> None:
        for i in range(PER_WORKER // 5):
            with shared_store.transaction():
                left.insert_one({"_id": f"{worker}-{i}"})
                right.update_one("log", Update(push={"ids": f"{worker}-{i}"}), upsert=True)

    with cf.ThreadPoolExecutor(max_workers=WORKERS) as ex:
        list(ex.map(_work, range(WORKERS)))

    log = right.find_one({"_id": "log"})
    assert log is not None
    assert sorted(log["ids"]) == sorted(d["_id"] for d in left.find())
