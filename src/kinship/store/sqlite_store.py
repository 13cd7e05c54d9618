"""SQLite-backed person store."""
from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from kinship.errors import StoreFailure
from kinship.models.person import Person
from kinship.store.base import (
    SPOUSE_LINKED,
    SPOUSE_UNLINKED,
    ListOrder,
    Page,
    PersonStore,
    check_changes,
)

logger = structlog.get_logger(__name__)

COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "surname",
    "maiden_name",
    "family",
    "gender",
    "marital_status",
    "father_id",
    "mother_id",
    "spouse_id",
    "father_name",
    "mother_name",
    "spouse_name",
    "birth_month",
    "birth_year",
    "profile_picture_url",
    "description",
    "is_deceased",
    "death_date",
    "created_at",
)

_ORDER_BY = {
    ListOrder.NAME: "name ASC, surname ASC, id ASC",
    ListOrder.NEWEST: "created_at DESC, id ASC",
}


def _to_db(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_person(row: sqlite3.Row) -> Person:
    return Person.model_validate(dict(row))


class SQLitePersonStore(PersonStore):
    """Person table in a SQLite file.

    Relationship links are deferred foreign keys into the same table, so a
    cascade may write in any order as long as the transaction ends
    consistent. A partial unique index on ``spouse_id`` stops two people
    from claiming the same spouse even when application checks race.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; multi-statement writes open explicit transactions
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        conn.execute("PRAGMA busy_timeout=5000;")
        return conn

    @property
    def _tx_conn(self) -> sqlite3.Connection | None:
        return getattr(self._local, "conn", None)

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        if self._tx_conn is not None:
            yield self._tx_conn
            return
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            logger.warning("sqlite_store.error", operation=operation, error=str(exc))
            raise StoreFailure(str(exc), operation=operation) from exc

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._tx_conn is not None:
            # Nested: join the outer transaction
            yield
            return
        with self._errors("transaction"):
            conn = self._connect()
        self._local.conn = conn
        try:
            with self._errors("begin"):
                conn.execute("BEGIN IMMEDIATE")
            try:
                yield
                with self._errors("commit"):
                    conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        finally:
            self._local.conn = None
            conn.close()

    def _init_schema(self) -> None:
        with self._errors("init_schema"), self._get_conn() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS persons (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    surname TEXT NOT NULL DEFAULT '',
                    maiden_name TEXT NOT NULL DEFAULT '',
                    family TEXT,
                    gender TEXT NOT NULL CHECK (gender IN ('male', 'female')),
                    marital_status TEXT NOT NULL DEFAULT 'single'
                        CHECK (marital_status IN ('single', 'married')),
                    father_id TEXT REFERENCES persons(id) DEFERRABLE INITIALLY DEFERRED,
                    mother_id TEXT REFERENCES persons(id) DEFERRABLE INITIALLY DEFERRED,
                    spouse_id TEXT REFERENCES persons(id) DEFERRABLE INITIALLY DEFERRED,
                    father_name TEXT,
                    mother_name TEXT,
                    spouse_name TEXT,
                    birth_month TEXT,
                    birth_year INTEGER,
                    profile_picture_url TEXT NOT NULL,
                    description TEXT,
                    is_deceased INTEGER NOT NULL DEFAULT 0,
                    death_date TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_persons_name ON persons(name, surname);
                CREATE INDEX IF NOT EXISTS idx_persons_created ON persons(created_at);
                CREATE INDEX IF NOT EXISTS idx_persons_father ON persons(father_id);
                CREATE INDEX IF NOT EXISTS idx_persons_mother ON persons(mother_id);

                -- One registered spouse per person
                CREATE UNIQUE INDEX IF NOT EXISTS idx_persons_spouse
                    ON persons(spouse_id) WHERE spouse_id IS NOT NULL;
                """
            )

    # --------------------------- Reads ---------------------------

    def list_page(
        self, page: int = 1, page_size: int = 50, order: ListOrder = ListOrder.NAME
    ) -> Page:
        offset = (page - 1) * page_size
        with self._errors("list_page"), self._get_conn() as conn:
            total = conn.execute("SELECT COUNT(*) FROM persons").fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM persons ORDER BY {_ORDER_BY[ListOrder(order)]} LIMIT ? OFFSET ?",
                (page_size, offset),
            ).fetchall()
        return Page(
            persons=[_row_to_person(r) for r in rows],
            total=total,
            page=page,
            page_size=page_size,
        )

    def get_all(self) -> list[Person]:
        with self._errors("get_all"), self._get_conn() as conn:
            rows = conn.execute("SELECT * FROM persons ORDER BY created_at DESC, id ASC").fetchall()
        return [_row_to_person(r) for r in rows]

    def get(self, person_id: str) -> Person | None:
        with self._errors("get"), self._get_conn() as conn:
            row = conn.execute("SELECT * FROM persons WHERE id = ?", (person_id,)).fetchone()
        return _row_to_person(row) if row else None

    def find_by_parent(self, parent_id: str) -> list[Person]:
        with self._errors("find_by_parent"), self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM persons WHERE father_id = ? OR mother_id = ?",
                (parent_id, parent_id),
            ).fetchall()
        return [_row_to_person(r) for r in rows]

    def find_siblings_by_parents(
        self, father_id: str | None, mother_id: str | None, exclude_id: str
    ) -> list[Person]:
        conditions: list[str] = []
        params: list[str] = []
        if father_id:
            conditions.append("father_id = ?")
            params.append(father_id)
        if mother_id:
            conditions.append("mother_id = ?")
            params.append(mother_id)
        if not conditions:
            return []
        with self._errors("find_siblings_by_parents"), self._get_conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM persons WHERE id != ? AND ({' OR '.join(conditions)})",
                (exclude_id, *params),
            ).fetchall()
        return [_row_to_person(r) for r in rows]

    # --------------------------- Writes --------------------------

    def insert(self, person: Person) -> None:
        data = person.model_dump()
        values = [_to_db(data[c]) for c in COLUMNS]
        values[COLUMNS.index("created_at")] = person.created_at.isoformat()
        with self._errors("insert"), self._get_conn() as conn:
            conn.execute(
                f"INSERT INTO persons ({', '.join(COLUMNS)}) VALUES ({', '.join('?' * len(COLUMNS))})",
                values,
            )

    def _set_clause(self, changes: dict[str, Any]) -> tuple[str, list[Any]]:
        check_changes(changes)
        return (
            ", ".join(f"{column} = ?" for column in changes),
            [_to_db(v) for v in changes.values()],
        )

    def update(self, person_id: str, changes: dict[str, Any]) -> None:
        if not changes:
            return
        clause, params = self._set_clause(changes)
        with self._errors("update"), self._get_conn() as conn:
            cursor = conn.execute(
                f"UPDATE persons SET {clause} WHERE id = ?", (*params, person_id)
            )
            if cursor.rowcount == 0:
                raise StoreFailure(f"No person with id {person_id}", operation="update")

    def update_many(self, person_ids: Iterable[str], changes: dict[str, Any]) -> int:
        ids = sorted(set(person_ids))
        if not ids or not changes:
            return 0
        clause, params = self._set_clause(changes)
        placeholders = ", ".join("?" * len(ids))
        with self._errors("update_many"), self._get_conn() as conn:
            cursor = conn.execute(
                f"UPDATE persons SET {clause} WHERE id IN ({placeholders})", (*params, *ids)
            )
            return cursor.rowcount

    def delete(self, person_id: str) -> None:
        with self._errors("delete"), self._get_conn() as conn:
            conn.execute("DELETE FROM persons WHERE id = ?", (person_id,))

    def delete_many(self, person_ids: Iterable[str]) -> int:
        ids = sorted(set(person_ids))
        if not ids:
            return 0
        with self._errors("delete_many"), self._get_conn() as conn:
            cursor = conn.execute(
                f"DELETE FROM persons WHERE id IN ({', '.join('?' * len(ids))})", ids
            )
            return cursor.rowcount

    def link_spouses(self, person_id_1: str, person_id_2: str) -> None:
        with self.transaction():
            self.update(person_id_1, {**SPOUSE_LINKED, "spouse_id": person_id_2})
            self.update(person_id_2, {**SPOUSE_LINKED, "spouse_id": person_id_1})

    def unlink_spouses(self, person_id: str, spouse_id: str) -> None:
        clause, params = self._set_clause(SPOUSE_UNLINKED)
        with self.transaction(), self._errors("unlink_spouses"), self._get_conn() as conn:
            conn.execute(f"UPDATE persons SET {clause} WHERE id = ?", (*params, person_id))
            conn.execute(
                f"UPDATE persons SET {clause} WHERE id = ? AND spouse_id = ?",
                (*params, spouse_id, person_id),
            )
