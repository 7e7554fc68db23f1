"""Commenting concept.

Authors post comments on targets. Both authors and targets belong to other
concepts and appear here only as identifiers. Each target with comments has a
thread listing its comments in posting order.
"""

from __future__ import annotations

from typing import TypedDict

from conceptual.domain import ID, NotFoundError, PreconditionError
from conceptual.service_layer import Concept, Relation, action, query


class CommentDoc(TypedDict):
    """A comment by `author` on `target`."""

    _id: ID
    target: ID
    author: ID
    body: str


class ThreadDoc(TypedDict):
    """Comments on a target in posting order; `_id` is the target's identifier."""

    _id: ID
    comments: list[ID]


class Commenting(Concept):
    """Let authors comment on targets."""

    purpose = "let authors attach remarks to targets"
    principle = (
        "after an author posts a comment on a target, the target's thread lists "
        "it, and only that author can edit or remove it"
    )

    comments = Relation(CommentDoc)
    threads = Relation(ThreadDoc)

    @action
    def post(self, *, target: ID, author: ID, body: str) -> dict[str, ID]:
        """Post a comment by `author` on `target`.

        Requires: `body` is not blank.
        Effects: adds a comment with a fresh identifier and appends it to the
        target's thread, creating the thread if needed. Spans `comments` and
        `threads`; both change or neither does.
        Returns: `{"comment": <new comment id>}`.
        """
        _require_body(body)
        comment = self.fresh_id()
        self.comments.insert(
            {"_id": comment, "target": target, "author": author, "body": body}
        )
        self.threads.update(target, push={"comments": comment}, upsert=True)
        return {"comment": comment}

    @action(idempotent=True)
    def edit(self, *, comment: ID, author: ID, body: str) -> None:
        """Replace the body of `comment`.

        Requires: the comment exists, was posted by `author`, and `body` is
        not blank.
        Effects: the comment's body is `body`.
        """
        _require_body(body)
        self._owned(comment, author)
        self.comments.update(comment, assign={"body": body})

    @action
    def remove(self, *, comment: ID, author: ID) -> None:
        """Remove `comment`.

        Requires: the comment exists and was posted by `author`.
        Effects: the comment is deleted and dropped from its target's thread.
        Spans `comments` and `threads`; both change or neither does.
        """
        doc = self._owned(comment, author)
        self.comments.delete(comment)
        self.threads.update(str(doc["target"]), pull={"comments": comment})

    @query(over="comments")
    def _comments(self, where):
        """Comments matching the filter; filter on `target` or `author`."""
        return self.comments.find(where)

    @query(over="threads")
    def _threads(self, where):
        """Threads matching the filter; filter on `comments` to find a comment's thread."""
        return self.threads.find(where)

    def _owned(self, comment: ID, author: ID) -> dict:
        doc = self.comments.get(comment)
        if doc is None:
            raise NotFoundError("comment", comment)
        if doc["author"] != author:
            raise PreconditionError("only the author may change a comment")
        return doc


def _require_body(body: str) -> None:
    if not body.strip():
        raise PreconditionError("comment body must not be blank")
