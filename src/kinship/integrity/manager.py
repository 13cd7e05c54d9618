"""Mutation entry points that keep parent and spouse links consistent.

Every operation validates against a fresh read of the store and then
issues the full set of writes its change implies. Validation failures
never write anything. A store failure aborts the remaining steps and is
reported with the name of the step that failed; when cascades are
transactional the earlier steps are rolled back as well.

Spouse pair lifecycle::

    Unlinked --link_spouses--> Linked --unlink_spouses / delete--> Unlinked
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager, nullcontext
from typing import Any, Callable

import structlog
from pydantic import ValidationError

from kinship.config import CONFIG, KinshipConfig
from kinship.errors import IdGenerationError, StoreFailure
from kinship.integrity.ids import generate_person_id
from kinship.integrity.sanitize import sanitize_fields
from kinship.models.person import RELATIVE_FIELDS, Gender, Person, PersonDraft, Role, to_field_names
from kinship.models.result import ActionResult
from kinship.models.snapshot import Snapshot
from kinship.resolver.relatives import find_children
from kinship.store.base import SPOUSE_UNLINKED, PersonStore

logger = structlog.get_logger(__name__)

# Prefix of the message reported when a step's store write fails
STEP_MESSAGES: dict[str, str] = {
    "read": "Failed to read persons",
    "insert": "Failed to create person",
    "update": "Failed to save person changes",
    "link_spouse": "Failed to link spouses",
    "unlink_spouse": "Failed to unlink spouses",
    "unlink_old_spouse": "Failed to unlink previous spouse",
    "clear_father": "Failed to unlink from children (father)",
    "clear_mother": "Failed to unlink from children (mother)",
    "clear_relation": "Failed to clear relation",
    "delete": "Failed to delete person profile",
    "update_status": "Failed to update status",
}

PARENT_GENDER: dict[Role, Gender] = {Role.FATHER: Gender.MALE, Role.MOTHER: Gender.FEMALE}


class _Steps:
    """Tracks the step currently being written, for failure reports."""

    def __init__(self) -> None:
        self.current = "read"

    def __call__(self, name: str) -> None:
        self.current = name


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def _first_word(text: str | None) -> str | None:
    if not text or not text.strip():
        return None
    return text.split()[0]


class LinkIntegrityManager:
    """Applies person mutations against a :class:`PersonStore`."""

    def __init__(
        self,
        store: PersonStore,
        config: KinshipConfig = CONFIG,
        id_factory: Callable[[Callable[[str], bool]], str] | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self._id_factory = id_factory or (
            lambda exists: generate_person_id(
                exists, length=config.id_length, max_attempts=config.id_max_attempts
            )
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _cascade(self) -> Iterator[_Steps]:
        scope = self.store.transaction() if self.config.transactional_cascades else nullcontext()
        with scope:
            yield _Steps()

    def _failed(self, steps: _Steps, exc: StoreFailure, person_id: str | None = None) -> ActionResult:
        logger.warning("integrity.step_failed", step=steps.current, error=exc.reason)
        return ActionResult.store_failure(
            f"{STEP_MESSAGES[steps.current]}: {exc.reason}",
            step=steps.current,
            person_id=person_id,
        )

    def _snapshot(self) -> Snapshot:
        return Snapshot(self.store.get_all())

    def _parent_violation(
        self, person: PersonDraft, snapshot: Snapshot, self_id: str | None = None
    ) -> ActionResult | None:
        for role, expected in PARENT_GENDER.items():
            parent_id = getattr(person, role.id_field)
            if not parent_id:
                continue
            if parent_id == self_id:
                return ActionResult.violation(f"A person cannot be their own {role.value}.")
            parent = snapshot.get(parent_id)
            if parent is None:
                return ActionResult.not_found(f"{role.value.capitalize()} {parent_id} not found.")
            if parent.gender != expected:
                return ActionResult.violation(
                    f"{parent.full_name} cannot be linked as {role.value}: "
                    f"the {role.value} must be {expected.value}."
                )
        return None

    def _spouse_violation(
        self, person: PersonDraft, person_id: str | None, candidate: Person
    ) -> ActionResult | None:
        if candidate.id == person_id:
            return ActionResult.violation("A person cannot be linked to themselves as spouse.")
        if candidate.gender == person.gender:
            return ActionResult.violation("Spouses must have different genders.")
        if candidate.spouse_id and candidate.spouse_id != person_id:
            return ActionResult.violation(
                f"{candidate.name} is already linked to another spouse. Please unlink them first."
            )
        return None

    def _gender_change_violation(
        self, original: Person, person: Person, snapshot: Snapshot
    ) -> ActionResult | None:
        """Children's father/mother links pin the gender of the parent."""
        if person.gender == original.gender:
            return None
        children = find_children(person.id, snapshot)
        if not children:
            return None
        return ActionResult.violation(
            f"{original.full_name} is recorded as a parent of {len(children)} person(s); "
            "clear those links before changing gender."
        )

    def _prepare(self, data: PersonDraft | dict[str, Any], model: type[PersonDraft]) -> PersonDraft:
        if isinstance(data, PersonDraft):
            data = data.model_dump()
        return model.model_validate(sanitize_fields(to_field_names(data)))

    # ------------------------------------------------------------------
    # create / update
    # ------------------------------------------------------------------

    def create_person(self, draft: PersonDraft | dict[str, Any]) -> ActionResult:
        """Insert a new person under a freshly generated id, then link its spouse."""
        data = draft.model_dump() if isinstance(draft, PersonDraft) else to_field_names(draft)
        data.pop("id", None)
        if not data.get("profile_picture_url"):
            data["profile_picture_url"] = self.config.placeholder_picture_url
        if not (data.get("surname") or "").strip():
            data["surname"] = data.get("maiden_name") or ""
        # Unregistered relatives are recorded by first name only
        for _, name_field in RELATIVE_FIELDS:
            if data.get(name_field):
                data[name_field] = _first_word(data[name_field])
        try:
            prepared = self._prepare(data, PersonDraft)
        except ValidationError as exc:
            return ActionResult.violation(_validation_message(exc))

        spouse_id = prepared.spouse_id
        steps = _Steps()
        try:
            with self._cascade() as steps:
                snapshot = self._snapshot()
                if (problem := self._parent_violation(prepared, snapshot)) is not None:
                    logger.info("create_person.rejected", reason=problem.message)
                    return problem
                if spouse_id:
                    spouse = snapshot.get(spouse_id)
                    if spouse is None:
                        return ActionResult.not_found(f"Spouse {spouse_id} not found.")
                    if (problem := self._spouse_violation(prepared, None, spouse)) is not None:
                        logger.info("create_person.rejected", reason=problem.message)
                        return problem

                try:
                    new_id = self._id_factory(lambda c: c in snapshot or self.store.exists(c))
                except IdGenerationError as exc:
                    return ActionResult.store_failure(str(exc), step="insert")

                person = Person(
                    **prepared.model_dump(exclude={"spouse_id"}),
                    id=new_id,
                )
                steps("insert")
                self.store.insert(person)
                if spouse_id:
                    steps("link_spouse")
                    self.store.link_spouses(new_id, spouse_id)
        except StoreFailure as exc:
            return self._failed(steps, exc)

        logger.info("create_person.created", person_id=new_id, spouse_id=spouse_id)
        return ActionResult.ok("Person created successfully.", person_id=new_id)

    def update_person(self, updated: Person | dict[str, Any]) -> ActionResult:
        """Save an edited person, re-pairing spouses when the spouse changes."""
        try:
            person = self._prepare(updated, Person)
        except ValidationError as exc:
            return ActionResult.violation(_validation_message(exc))
        steps = _Steps()
        try:
            with self._cascade() as steps:
                snapshot = self._snapshot()
                original = snapshot.get(person.id)
                if original is None:
                    return ActionResult.not_found("Could not find person to update.")
                if (problem := self._parent_violation(person, snapshot, self_id=person.id)) is not None:
                    logger.info("update_person.rejected", person_id=person.id, reason=problem.message)
                    return problem
                if (problem := self._gender_change_violation(original, person, snapshot)) is not None:
                    logger.info("update_person.rejected", person_id=person.id, reason=problem.message)
                    return problem

                old_spouse_id = original.spouse_id
                new_spouse_id = person.spouse_id
                if new_spouse_id:
                    candidate = snapshot.get(new_spouse_id)
                    if candidate is None:
                        return ActionResult.not_found(f"Spouse {new_spouse_id} not found.")
                    if (problem := self._spouse_violation(person, person.id, candidate)) is not None:
                        logger.info("update_person.rejected", person_id=person.id, reason=problem.message)
                        return problem

                excluded = {"id", "created_at", "spouse_id"}
                if new_spouse_id:
                    excluded |= {"spouse_name", "marital_status"}
                changes = person.model_dump(exclude=excluded)
                if old_spouse_id and not new_spouse_id:
                    changes.update(SPOUSE_UNLINKED)

                if old_spouse_id and old_spouse_id != new_spouse_id:
                    steps("unlink_old_spouse")
                    self.store.unlink_spouses(person.id, old_spouse_id)
                steps("update")
                self.store.update(person.id, changes)
                if new_spouse_id:
                    steps("link_spouse")
                    self.store.link_spouses(person.id, new_spouse_id)
        except StoreFailure as exc:
            return self._failed(steps, exc, person_id=person.id)

        logger.info(
            "update_person.saved",
            person_id=person.id,
            old_spouse_id=old_spouse_id,
            new_spouse_id=new_spouse_id,
        )
        return ActionResult.ok("Person updated successfully.", person_id=person.id)

    # ------------------------------------------------------------------
    # spouse links
    # ------------------------------------------------------------------

    def link_spouses(self, person_id_1: str, person_id_2: str) -> ActionResult:
        """Link two persons as spouses of each other.

        Linking a pair that is already linked to each other succeeds
        without writing.
        """
        if person_id_1 == person_id_2:
            return ActionResult.violation("A person cannot be linked to themselves as spouse.")

        steps = _Steps()
        try:
            with self._cascade() as steps:
                first = self.store.get(person_id_1)
                second = self.store.get(person_id_2)
                if first is None or second is None:
                    return ActionResult.not_found("One or both persons not found for linking.")
                if first.spouse_id == second.id and second.spouse_id == first.id:
                    return ActionResult.ok("Spouses are already linked.")
                if first.spouse_id and first.spouse_id != second.id:
                    return ActionResult.violation(
                        f"{first.name} is already linked to another spouse. Please unlink them first."
                    )
                if (problem := self._spouse_violation(first, first.id, second)) is not None:
                    logger.info("link_spouses.rejected", ids=[first.id, second.id], reason=problem.message)
                    return problem

                steps("link_spouse")
                self.store.link_spouses(first.id, second.id)
        except StoreFailure as exc:
            return self._failed(steps, exc)

        logger.info("link_spouses.linked", ids=[person_id_1, person_id_2])
        return ActionResult.ok("Spouses linked successfully.")

    def unlink_spouses(self, person_id: str) -> ActionResult:
        steps = _Steps()
        try:
            with self._cascade() as steps:
                person = self.store.get(person_id)
                if person is None:
                    return ActionResult.not_found("Could not find person to unlink.")
                if not person.spouse_id:
                    return ActionResult.ok("No spouse to unlink.")
                spouse_id = person.spouse_id
                steps("unlink_spouse")
                self.store.unlink_spouses(person_id, spouse_id)
        except StoreFailure as exc:
            return self._failed(steps, exc)

        logger.info("unlink_spouses.unlinked", person_id=person_id, spouse_id=spouse_id)
        return ActionResult.ok("Spouses unlinked successfully.")

    # ------------------------------------------------------------------
    # single-field edits
    # ------------------------------------------------------------------

    def clear_relation(self, person_id: str, role: Role | str) -> ActionResult:
        """Forget a person's father or mother, both the link and the free-text name."""
        role = Role(role)
        steps = _Steps()
        try:
            with self._cascade() as steps:
                if self.store.get(person_id) is None:
                    return ActionResult.not_found(f"Could not find person {person_id}.")
                steps("clear_relation")
                self.store.update(person_id, {role.id_field: None, role.name_field: None})
        except StoreFailure as exc:
            return self._failed(steps, exc)
        return ActionResult.ok(f"Successfully cleared {role.value}.")

    def update_deceased_status(self, person_ids: Iterable[str], is_deceased: bool) -> ActionResult:
        ids = set(person_ids)
        if not ids:
            return ActionResult.ok("No persons selected.")
        changes: dict[str, Any] = {"is_deceased": is_deceased}
        if not is_deceased:
            changes["death_date"] = None
        steps = _Steps()
        try:
            with self._cascade() as steps:
                steps("update_status")
                self.store.update_many(ids, changes)
        except StoreFailure as exc:
            return self._failed(steps, exc)
        return ActionResult.ok("Deceased status updated.")

    # ------------------------------------------------------------------
    # deletion
    # ------------------------------------------------------------------

    def delete_person(self, person_id: str) -> ActionResult:
        failure, _ = self._delete_cascade({person_id}, require_all=True)
        if failure is not None:
            return failure
        return ActionResult.ok("Person and all relationships removed.", person_id=person_id)

    def bulk_delete(self, person_ids: Iterable[str]) -> ActionResult:
        ids = set(person_ids)
        if not ids:
            return ActionResult.ok("No persons selected.")
        failure, deleted = self._delete_cascade(ids)
        if failure is not None:
            return failure
        noun = "person" if deleted == 1 else "persons"
        return ActionResult.ok(f"{deleted} {noun} deleted successfully.")

    def _delete_cascade(
        self, ids: set[str], require_all: bool = False
    ) -> tuple[ActionResult | None, int]:
        """Remove ``ids`` and every reference to them, in a fixed order.

        1. unlink spouses outside the deleted set (pairs inside it vanish together)
        2. clear father links pointing into the set
        3. clear mother links pointing into the set
        4. delete the records

        Ids with no record are skipped unless ``require_all`` is set. Returns
        ``(None, deleted_count)`` on success, otherwise ``(failure, 0)``.
        """
        steps = _Steps()
        try:
            with self._cascade() as steps:
                snapshot = self._snapshot()
                missing = ids - snapshot.keys()
                if require_all and missing:
                    return ActionResult.not_found(
                        f"Could not find person {', '.join(sorted(missing))} to delete."
                    ), 0
                ids = ids - missing

                survivors = [p for p in snapshot.values() if p.id not in ids]
                external_spouses = [p.id for p in survivors if p.spouse_id in ids]
                father_refs = [p.id for p in survivors if p.father_id in ids]
                mother_refs = [p.id for p in survivors if p.mother_id in ids]

                if external_spouses:
                    steps("unlink_spouse")
                    self.store.update_many(external_spouses, SPOUSE_UNLINKED)
                if father_refs:
                    steps("clear_father")
                    self.store.update_many(father_refs, {"father_id": None, "father_name": None})
                if mother_refs:
                    steps("clear_mother")
                    self.store.update_many(mother_refs, {"mother_id": None, "mother_name": None})
                steps("delete")
                if len(ids) == 1:
                    self.store.delete(next(iter(ids)))
                elif ids:
                    self.store.delete_many(ids)
        except StoreFailure as exc:
            return self._failed(steps, exc), 0

        logger.info(
            "delete_cascade.completed",
            deleted=sorted(ids),
            unlinked_spouses=external_spouses,
            cleared_father=father_refs,
            cleared_mother=mother_refs,
        )
        return None, len(ids)
