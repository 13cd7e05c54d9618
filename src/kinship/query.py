"""Read side: paged listings and consistent snapshots for the resolver."""
from __future__ import annotations

import structlog

from kinship.config import CONFIG
from kinship.models.person import Person
from kinship.models.snapshot import Snapshot
from kinship.resolver.family_view import FamilyView, build_family_view
from kinship.store.base import ListOrder, Page, PersonStore

logger = structlog.get_logger(__name__)


class PersonQuery:
    """Query façade over a person store.

    ``children_of`` and ``siblings_of`` use the store's filtered queries;
    they return the same persons as ``find_children`` / ``find_siblings``
    over ``snapshot()``.
    """

    def __init__(self, store: PersonStore, page_size: int = CONFIG.page_size) -> None:
        self.store = store
        self.page_size = page_size

    def page(
        self, page: int = 1, page_size: int | None = None, order: ListOrder = ListOrder.NAME
    ) -> Page:
        if page < 1:
            raise ValueError("page numbers start at 1")
        size = page_size or self.page_size
        if size < 1:
            raise ValueError("page_size must be positive")
        return self.store.list_page(page, size, ListOrder(order))

    def snapshot(self) -> Snapshot:
        persons = self.store.get_all()
        logger.debug("query.snapshot", persons=len(persons))
        return Snapshot(persons)

    def get(self, person_id: str) -> Person | None:
        if not person_id:
            return None
        return self.store.get(person_id)

    def children_of(self, parent_id: str | None) -> list[Person]:
        if not parent_id:
            return []
        return self.store.find_by_parent(parent_id)

    def siblings_of(self, person: Person | None) -> list[Person]:
        if person is None:
            return []
        return self.store.find_siblings_by_parents(person.father_id, person.mother_id, person.id)

    def family_view(self, person_id: str) -> FamilyView | None:
        return build_family_view(person_id, self.snapshot())
