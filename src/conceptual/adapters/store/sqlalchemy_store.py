"""SQLAlchemy-backed DocumentStore adapter.

Each namespace is realized as its own table, named exactly after the namespace
(e.g. ``"Labeling.labels"``, quoted by SQLAlchemy), with three columns:

| Column | Purpose                                                    |
|--------|------------------------------------------------------------|
| `_id`  | document identifier (primary key)                          |
| `rev`  | per-document revision, bumped on every write               |
| `doc`  | the document itself, `_id` included (JSON / JSONB)         |

Single-document updates are an optimistic read-modify-write: the new body is
written only if `rev` still holds the value that was read, and the sequence is
retried when another writer got there first. Upserts use a dialect-specific
``INSERT .. ON CONFLICT DO NOTHING`` so a lost insert race falls back to the
update path instead of raising.

Writes outside `transaction()` run in their own short transaction; writes
inside it share the thread's connection and commit or roll back together.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Integer, String, Table, delete, insert, select
from sqlalchemy import update as sql_update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError

from conceptual.adapters.db.dialects import DialectName
from conceptual.adapters.db.metadata import make_metadata
from conceptual.adapters.db.sa_types import PORTABLE_JSON
from conceptual.domain.values import Value, copy_record
from conceptual.interfaces.store import (
    ID_FIELD,
    Collection,
    ConcurrentUpdateError,
    Document,
    DocumentStore,
    DuplicateIdError,
    StoreUnavailableError,
    Update,
    UpdateResult,
    ensure_writable,
    validate_namespace,
)

from .documents import apply_update, matches, sort_by_id

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.sql.dml import Insert

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 16  # pragma: no mutate


@contextmanager
def _translate_store_errors() -> Iterator[None]:
    """Map driver-level failures to `StoreUnavailableError`."""
    try:
        yield
    except DBAPIError as e:  # OperationalError, InterfaceError, etc.
        raise StoreUnavailableError(str(e)) from e


class SqlAlchemyCollection(Collection):
    """Collection stored in a single table."""

    def __init__(self, store: SqlAlchemyDocumentStore, table: Table) -> None:
        self._store = store
        self._table = table
        self.namespace = table.name

    @property
    def _id_col(self) -> Column[Any]:
        return self._table.c[ID_FIELD]

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def find(self, where: Mapping[str, Value] | None = None) -> list[Document]:
        stmt = select(self._table.c.doc)
        if where and isinstance(doc_id := where.get(ID_FIELD), str):
            stmt = stmt.where(self._id_col == doc_id)
        with self._store.connect() as conn:
            rows = conn.execute(stmt).scalars().all()
        # ordered in Python: database collations disagree on `_id` order
        return sort_by_id(copy_record(doc) for doc in rows if matches(doc, where))

    def insert_one(self, document: Mapping[str, Value]) -> None:
        ensure_writable(self.namespace, "insert_one")
        doc = copy_record(document)
        doc_id = str(doc[ID_FIELD])
        with self._store.connect() as conn:
            try:
                conn.execute(insert(self._table).values(_id=doc_id, rev=1, doc=doc))
            except IntegrityError as e:
                raise DuplicateIdError(self.namespace, doc_id) from e

    def update_one(
        self, doc_id: str, update: Update, *, upsert: bool = False
    ) -> UpdateResult:
        ensure_writable(self.namespace, "update_one")
        with self._store.connect() as conn:
            for _ in range(MAX_UPDATE_ATTEMPTS):
                row = conn.execute(
                    select(self._table.c.rev, self._table.c.doc).where(
                        self._id_col == doc_id
                    )
                ).first()

                if row is None:
                    if not upsert:
                        return UpdateResult(matched=False, modified=False)
                    created = apply_update({ID_FIELD: doc_id}, update)
                    if self._insert_if_absent(conn, doc_id, created):
                        return UpdateResult(matched=False, modified=True, upserted=True)
                    continue  # someone else created it first; update theirs

                updated = apply_update(row.doc, update)
                if updated == row.doc:
                    return UpdateResult(matched=True, modified=False)
                result = conn.execute(
                    sql_update(self._table)
                    .where(self._id_col == doc_id, self._table.c.rev == row.rev)
                    .values(doc=updated, rev=row.rev + 1)
                )
                if result.rowcount == 1:
                    return UpdateResult(matched=True, modified=True)
                logger.debug(
                    "Lost update race on %s/%s at rev %s; retrying",
                    self.namespace,
                    doc_id,
                    row.rev,
                )
        raise ConcurrentUpdateError(self.namespace, doc_id, MAX_UPDATE_ATTEMPTS)

    def update_many(self, where: Mapping[str, Value], update: Update) -> int:
        ensure_writable(self.namespace, "update_many")
        with self._store.transaction():
            return sum(
                self.update_one(str(doc[ID_FIELD]), update).modified
                for doc in self.find(where)
            )

    def delete_one(self, doc_id: str) -> bool:
        ensure_writable(self.namespace, "delete_one")
        with self._store.connect() as conn:
            result = conn.execute(delete(self._table).where(self._id_col == doc_id))
        return result.rowcount == 1

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _insert_if_absent(self, conn: Connection, doc_id: str, doc: Document) -> bool:
        """Insert `doc` unless `_id` is taken; return whether a row was inserted."""
        stmt = self._build_no_throw_insert({"_id": doc_id, "rev": 1, "doc": doc})
        return conn.execute(stmt).rowcount == 1

    def _build_no_throw_insert(self, values: dict) -> Insert:
        if self._store.dialect is DialectName.POSTGRES:
            return pg_insert(self._table).values(**values).on_conflict_do_nothing()
        return sqlite_insert(self._table).values(**values).on_conflict_do_nothing()


class SqlAlchemyDocumentStore(DocumentStore):
    """DocumentStore over a SQLAlchemy Engine (SQLite or PostgreSQL).

    Tables are created lazily, the first time a namespace is bound, using
    ``CREATE TABLE IF NOT EXISTS`` semantics; existing data is left untouched.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.dialect = DialectName.from_sqlalchemy(engine)
        self.metadata = make_metadata()
        self._tables: dict[str, Table] = {}
        self._bind_lock = threading.Lock()
        self._local = threading.local()

    def collection(self, namespace: str) -> Collection:
        validate_namespace(namespace)
        with self._bind_lock:
            if (table := self._tables.get(namespace)) is None:
                table = Table(
                    namespace,
                    self.metadata,
                    Column(ID_FIELD, String(200), primary_key=True),
                    Column("rev", Integer, nullable=False),
                    Column("doc", PORTABLE_JSON, nullable=False),
                    comment=f"Documents of the {namespace} relation.",
                )
                logger.debug("Binding table %s", namespace)
                with _translate_store_errors():
                    table.create(self.engine, checkfirst=True)
                self._tables[namespace] = table
        return SqlAlchemyCollection(self, table)

    def namespaces(self) -> list[str]:
        with self._bind_lock:
            return sorted(self._tables)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "connection", None) is not None:
            yield  # join the enclosing transaction
            return
        with _translate_store_errors():
            with self.engine.begin() as conn:
                self._local.connection = conn
                try:
                    yield
                finally:
                    self._local.connection = None

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield the thread's transaction connection, or a short-lived one."""
        current: Connection | None = getattr(self._local, "connection", None)
        with _translate_store_errors():
            if current is not None:
                yield current
                return
            with self.engine.begin() as conn:
                yield conn
