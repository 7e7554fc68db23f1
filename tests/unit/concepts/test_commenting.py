"""Unit tests for the Commenting concept."""

from __future__ import annotations

import pytest

from conceptual.concepts.commenting import Commenting
from conceptual.domain import unchecked_id

# pylint: disable=redefined-outer-name,protected-access

POST = unchecked_id("post-1")
ALICE = unchecked_id("alice")
BOB = unchecked_id("bob")


@pytest.fixture
def commenting(memory_store) -> Commenting:
    return Commenting(memory_store)


def test_post_adds_comment_and_thread(commenting: Commenting):
    """A posted comment is stored and listed in its target's thread."""
    result = commenting.post(target=POST, author=ALICE, body="First!")

    comment = result["comment"]
    assert commenting._comments(_id=comment) == [
        {"_id": comment, "target": POST, "author": ALICE, "body": "First!"}
    ]
    assert commenting._threads(_id=POST) == [{"_id": POST, "comments": [comment]}]


def test_thread_keeps_posting_order(commenting: Commenting):
    first = commenting.post(target=POST, author=ALICE, body="one")["comment"]
    second = commenting.post(target=POST, author=BOB, body="two")["comment"]
    third = commenting.post(target=POST, author=ALICE, body="three")["comment"]

    (thread,) = commenting._threads(_id=POST)
    assert thread["comments"] == [first, second, third]
    assert len(commenting._comments(author=ALICE)) == 2


def test_blank_body_is_rejected(commenting: Commenting):
    assert commenting.post(target=POST, author=ALICE, body="  ") == {
        "error": "comment body must not be blank"
    }
    assert commenting._comments() == []
    assert commenting._threads() == []


def test_edit_by_author(commenting: Commenting):
    comment = commenting.post(target=POST, author=ALICE, body="tpyo")["comment"]

    assert commenting.edit(comment=comment, author=ALICE, body="typo") == {}
    assert commenting.edit(comment=comment, author=ALICE, body="typo") == {}

    assert commenting._comments(_id=comment)[0]["body"] == "typo"


def test_edit_by_someone_else_is_rejected(commenting: Commenting):
    """Only the author may change a comment."""
    comment = commenting.post(target=POST, author=ALICE, body="mine")["comment"]

    assert commenting.edit(comment=comment, author=BOB, body="ours") == {
        "error": "only the author may change a comment"
    }
    assert commenting._comments(_id=comment)[0]["body"] == "mine"


def test_edit_unknown_comment_is_rejected(commenting: Commenting):
    assert commenting.edit(comment="nope", author=ALICE, body="x") == {
        "error": "comment not found"
    }


def test_remove_drops_comment_from_thread(commenting: Commenting):
    """Removing a comment updates both relations."""
    first = commenting.post(target=POST, author=ALICE, body="one")["comment"]
    second = commenting.post(target=POST, author=BOB, body="two")["comment"]

    assert commenting.remove(comment=first, author=ALICE) == {}

    assert [c["_id"] for c in commenting._comments()] == [second]
    assert commenting._threads(_id=POST)[0]["comments"] == [second]


def test_remove_by_someone_else_is_rejected(commenting: Commenting):
    comment = commenting.post(target=POST, author=ALICE, body="mine")["comment"]
    before = (commenting._comments(), commenting._threads())

    assert commenting.remove(comment=comment, author=BOB) == {
        "error": "only the author may change a comment"
    }
    assert (commenting._comments(), commenting._threads()) == before


def test_threads_by_comment(commenting: Commenting):
    """Filtering `_threads` on `comments` finds the target of a comment."""
    comment = commenting.post(target=POST, author=ALICE, body="hi")["comment"]
    commenting.post(target=unchecked_id("post-2"), author=ALICE, body="hi")

    assert [t["_id"] for t in commenting._threads(comments=comment)] == [POST]


def test_post_is_all_or_nothing(commenting: Commenting, monkeypatch):
    """A failure while threading the comment leaves no orphan comment."""

    def boom(*args, **kwargs):
        raise RuntimeError("store went away")

    monkeypatch.setattr(commenting.threads, "update", boom)

    with pytest.raises(RuntimeError):
        commenting.post(target=POST, author=ALICE, body="lost")

    assert commenting._comments() == []
