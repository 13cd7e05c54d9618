"""Person store backends."""
from __future__ import annotations

from kinship.store.base import ListOrder, Page, PersonStore
from kinship.store.memory import InMemoryPersonStore
from kinship.store.sqlite_store import SQLitePersonStore

__all__ = ["InMemoryPersonStore", "ListOrder", "Page", "PersonStore", "SQLitePersonStore"]
