"""Tests for the link integrity manager."""

import pytest

from kinship.config import KinshipConfig
from kinship.errors import IdGenerationError, StoreFailure
from kinship.integrity import LinkIntegrityManager, generate_person_id, sanitize_fields, strip_markup
from kinship.integrity import ids as ids_module
from kinship.models import FailureKind, Gender, MaritalStatus, Person
from kinship.store import InMemoryPersonStore


class FailingStore(InMemoryPersonStore):
    """Store whose bulk updates touching ``fail_fields`` raise."""

    def __init__(self, persons=(), fail_fields=(), fail_link=False):
        self.fail_fields = set(fail_fields)
        self.fail_link = fail_link
        super().__init__(persons)

    def update_many(self, person_ids, changes):
        if self.fail_fields & changes.keys():
            raise StoreFailure("disk full", operation="update_many")
        return super().update_many(person_ids, changes)

    def link_spouses(self, person_id_1, person_id_2):
        if self.fail_link:
            raise StoreFailure("disk full", operation="link_spouses")
        super().link_spouses(person_id_1, person_id_2)


class RecordingStore(InMemoryPersonStore):
    def __init__(self, persons=()):
        self.calls = []
        super().__init__(persons)

    def update_many(self, person_ids, changes):
        self.calls.append((sorted(set(person_ids)), sorted(changes)))
        return super().update_many(person_ids, changes)


@pytest.fixture
def store(family):
    return InMemoryPersonStore(family)


@pytest.fixture
def manager(store):
    return LinkIntegrityManager(store)


def _assert_no_references(store, deleted):
    for person in store.get_all():
        assert not (person.relative_ids() & set(deleted)), person.id


class TestCreatePerson:
    """Tests for registering new persons."""

    def test_creates_with_generated_id(self, manager, store):
        result = manager.create_person({"name": "Nila", "gender": "female"})
        assert result.success
        assert result.message == "Person created successfully."
        assert len(result.person_id) == 8
        created = store.get(result.person_id)
        assert created.name == "NILA"
        assert created.marital_status == MaritalStatus.SINGLE

    def test_custom_id_factory(self, store):
        manager = LinkIntegrityManager(store, id_factory=lambda exists: "NEW1")
        result = manager.create_person({"name": "Nila", "gender": "female", "fatherId": "S"})
        assert result.person_id == "NEW1"
        assert store.get("NEW1").father_id == "S"

    def test_female_father_rejected(self, manager, store):
        before = len(store.get_all())
        result = manager.create_person({"name": "Kiran", "gender": "male", "father_id": "M1"})
        assert not result.success
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert len(store.get_all()) == before

    def test_male_mother_rejected(self, manager):
        result = manager.create_person({"name": "Kiran", "gender": "male", "mother_id": "S"})
        assert result.kind == FailureKind.INVARIANT_VIOLATION

    def test_missing_father(self, manager, store):
        before = len(store.get_all())
        result = manager.create_person({"name": "Kiran", "gender": "male", "father_id": "GONE"})
        assert result.kind == FailureKind.NOT_FOUND
        assert len(store.get_all()) == before

    def test_invalid_input_is_violation(self, manager):
        result = manager.create_person({"name": "K1ran", "gender": "male"})
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert "name" in result.message

    def test_links_spouse_both_ways(self, manager, store):
        result = manager.create_person({"name": "Rupa", "gender": "female", "spouse_id": "S"})
        assert result.success
        new = store.get(result.person_id)
        husband = store.get("S")
        assert new.spouse_id == "S"
        assert husband.spouse_id == new.id
        assert new.marital_status == husband.marital_status == MaritalStatus.MARRIED

    def test_married_spouse_rejected(self, manager, store):
        before = len(store.get_all())
        result = manager.create_person({"name": "Rupa", "gender": "female", "spouse_id": "P"})
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert "already linked to another spouse" in result.message
        assert len(store.get_all()) == before
        assert store.get("P").spouse_id == "W1"

    def test_same_gender_spouse_rejected(self, manager):
        result = manager.create_person({"name": "Raj", "gender": "male", "spouse_id": "S"})
        assert result.message == "Spouses must have different genders."

    def test_markup_stripped(self, manager, store):
        result = manager.create_person({
            "name": "<b>Nila</b>",
            "gender": "female",
            "description": "<p>Teacher at <i>school</i></p>",
        })
        created = store.get(result.person_id)
        assert created.name == "NILA"
        assert created.description == "Teacher at school"

    def test_surname_falls_back_to_maiden_name(self, manager, store):
        result = manager.create_person({"name": "Nila", "gender": "female", "maidenName": "shah"})
        created = store.get(result.person_id)
        assert created.surname == "SHAH"
        assert created.maiden_name == "SHAH"

    def test_unregistered_relative_keeps_first_name(self, manager, store):
        result = manager.create_person({"name": "Nila", "gender": "female", "father_name": "Ramesh Kumar"})
        assert store.get(result.person_id).father_name == "Ramesh"

    def test_placeholder_picture_from_config(self, store):
        config = KinshipConfig(placeholder_picture_url="https://img.example/blank.png")
        manager = LinkIntegrityManager(store, config=config)
        result = manager.create_person({"name": "Nila", "gender": "female"})
        assert store.get(result.person_id).profile_picture_url == "https://img.example/blank.png"

    def test_linked_relative_drops_free_text(self, manager, store):
        result = manager.create_person({
            "name": "Nila", "gender": "female", "father_id": "S", "father_name": "Someone",
        })
        assert store.get(result.person_id).father_name is None

    def test_id_exhaustion_reported(self, store, monkeypatch):
        monkeypatch.setattr(ids_module, "new_person_id", lambda length: "P")
        manager = LinkIntegrityManager(store, config=KinshipConfig(id_max_attempts=3))
        result = manager.create_person({"name": "Nila", "gender": "female"})
        assert result.kind == FailureKind.STORE_FAILURE
        assert result.failed_step == "insert"

    def test_failed_spouse_link_rolls_back_insert(self, family):
        store = FailingStore(family, fail_link=True)
        before = len(store.get_all())
        result = LinkIntegrityManager(store).create_person(
            {"name": "Rupa", "gender": "female", "spouse_id": "S"}
        )
        assert result.kind == FailureKind.STORE_FAILURE
        assert result.failed_step == "link_spouse"
        assert result.message == "Failed to link spouses: disk full"
        assert len(store.get_all()) == before


class TestGeneratePersonId:
    def test_retries_on_collision(self, monkeypatch):
        candidates = iter(["AAA", "BBB", "CCC"])
        monkeypatch.setattr(ids_module, "new_person_id", lambda length: next(candidates))
        assert generate_person_id({"AAA", "BBB"}.__contains__) == "CCC"

    def test_gives_up(self):
        with pytest.raises(IdGenerationError):
            generate_person_id(lambda candidate: True, max_attempts=3)

    def test_alphabet(self):
        pid = ids_module.new_person_id(12)
        assert len(pid) == 12
        assert set(pid) <= set(ids_module.ID_ALPHABET)


class TestUpdatePerson:
    """Tests for saving edited persons."""

    def test_change_spouse(self, manager, store):
        edited = store.get("S").model_copy(update={"spouse_id": "WS"})
        assert manager.update_person(edited).success
        assert store.get("S").spouse_id == "WS"
        assert store.get("WS").spouse_id == "S"

    def test_replace_spouse_unlinks_old(self, manager, store):
        edited = store.get("P").model_copy(update={"spouse_id": "WS"})
        result = manager.update_person(edited)
        assert result.message == "Person updated successfully."
        old = store.get("W1")
        assert old.spouse_id is None
        assert old.marital_status == MaritalStatus.SINGLE
        assert store.get("P").spouse_id == "WS"
        assert store.get("WS").spouse_id == "P"

    def test_remove_spouse(self, manager, store):
        edited = store.get("P").model_copy(update={"spouse_id": None})
        assert manager.update_person(edited).success
        assert store.get("P").spouse_id is None
        assert store.get("W1").spouse_id is None
        assert store.get("P").marital_status == MaritalStatus.SINGLE
        assert store.get("W1").marital_status == MaritalStatus.SINGLE

    def test_plain_field_edit_keeps_spouse(self, manager, store):
        edited = store.get("P").model_copy(update={"description": "Engineer"})
        assert manager.update_person(edited).success
        person = store.get("P")
        assert person.description == "Engineer"
        assert person.spouse_id == "W1"
        assert store.get("W1").spouse_id == "P"

    def test_accepts_column_names(self, manager, store):
        data = store.get("S").model_dump(by_alias=True)
        data["birthYear"] = 1979
        assert manager.update_person(data).success
        assert store.get("S").birth_year == 1979

    def test_unknown_person(self, manager):
        result = manager.update_person(Person(id="ZZZ", name="Ghost", gender="male"))
        assert result.kind == FailureKind.NOT_FOUND
        assert result.message == "Could not find person to update."

    def test_wrong_gender_parent_rejected(self, manager, store):
        edited = store.get("S").model_copy(update={"father_id": "M2"})
        result = manager.update_person(edited)
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert store.get("S").father_id == "F1"

    def test_taken_spouse_rejected(self, manager, store):
        edited = store.get("S").model_copy(update={"spouse_id": "W1"})
        result = manager.update_person(edited)
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert store.get("S").spouse_id is None
        assert store.get("W1").spouse_id == "P"

    def test_gender_change_rejected_for_recorded_parent(self, manager, store):
        edited = store.get("GF1").model_copy(update={"gender": Gender.FEMALE})
        result = manager.update_person(edited)
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert store.get("GF1").gender == Gender.MALE
        assert store.get("F1").father_id == "GF1"

    def test_gender_change_allowed_without_children(self, manager, store):
        edited = store.get("S").model_copy(update={"gender": Gender.FEMALE})
        assert manager.update_person(edited).success
        assert store.get("S").gender == Gender.FEMALE

    def test_linked_father_clears_name(self, manager, store):
        edited = store.get("S").model_copy(update={"father_name": "Stale"})
        assert manager.update_person(edited).success
        assert store.get("S").father_name is None


class TestLinkSpouses:
    """Tests for spouse linking."""

    def test_symmetric(self, manager, store):
        result = manager.link_spouses("S", "WS")
        assert result.message == "Spouses linked successfully."
        s, ws = store.get("S"), store.get("WS")
        assert s.spouse_id == "WS" and ws.spouse_id == "S"
        assert s.marital_status == ws.marital_status == MaritalStatus.MARRIED

    def test_already_linked_pair(self, manager):
        result = manager.link_spouses("P", "W1")
        assert result.success
        assert result.message == "Spouses are already linked."

    def test_same_gender(self, manager, store):
        result = manager.link_spouses("S", "U2")
        assert result.kind == FailureKind.INVARIANT_VIOLATION
        assert store.get("S").spouse_id is None
        assert store.get("U2").spouse_id is None

    def test_one_side_taken(self, manager, store):
        result = manager.link_spouses("S", "W1")
        assert result.message == "WAMIKA is already linked to another spouse. Please unlink them first."
        assert store.get("W1").spouse_id == "P"
        assert store.get("S").spouse_id is None

    def test_first_side_taken(self, manager):
        result = manager.link_spouses("P", "WS")
        assert result.kind == FailureKind.INVARIANT_VIOLATION

    def test_self(self, manager):
        assert manager.link_spouses("S", "S").kind == FailureKind.INVARIANT_VIOLATION

    def test_missing(self, manager):
        result = manager.link_spouses("S", "GONE")
        assert result.kind == FailureKind.NOT_FOUND
        assert result.message == "One or both persons not found for linking."


class TestUnlinkSpouses:
    """Tests for spouse unlinking."""

    def test_clears_both_sides(self, manager, store):
        result = manager.unlink_spouses("W1")
        assert result.message == "Spouses unlinked successfully."
        for pid in ("P", "W1"):
            person = store.get(pid)
            assert person.spouse_id is None
            assert person.marital_status == MaritalStatus.SINGLE

    def test_idempotent(self, manager, store):
        manager.unlink_spouses("P")
        again = manager.unlink_spouses("P")
        assert again.success
        assert again.message == "No spouse to unlink."
        assert store.get("W1").spouse_id is None

    def test_unknown(self, manager):
        assert manager.unlink_spouses("GONE").kind == FailureKind.NOT_FOUND

    def test_far_side_pointing_elsewhere_untouched(self, make_person):
        store = InMemoryPersonStore([
            make_person("A", "male", spouse="B"),
            make_person("B", "female", spouse="C"),
            make_person("C", "male", spouse="B"),
        ])
        assert LinkIntegrityManager(store).unlink_spouses("A").success
        assert store.get("A").spouse_id is None
        assert store.get("B").spouse_id == "C"


class TestClearRelation:
    def test_clear_father(self, manager, store):
        result = manager.clear_relation("P", "father")
        assert result.message == "Successfully cleared father."
        person = store.get("P")
        assert person.father_id is None
        assert person.father_name is None
        assert person.mother_id == "M1"

    def test_clear_free_text_mother(self, manager, store):
        store.update("GF1", {"mother_name": "Lila"})
        manager.clear_relation("GF1", "mother")
        assert store.get("GF1").mother_name is None

    def test_invalid_role(self, manager):
        with pytest.raises(ValueError):
            manager.clear_relation("P", "uncle")

    def test_unknown_person(self, manager):
        assert manager.clear_relation("GONE", "father").kind == FailureKind.NOT_FOUND


class TestDeceasedStatus:
    def test_mark_deceased(self, manager, store):
        assert manager.update_deceased_status(["GF1", "GM1"], True).success
        assert store.get("GF1").is_deceased
        assert store.get("GM1").is_deceased
        assert not store.get("F1").is_deceased

    def test_mark_living_clears_death_date(self, manager, store):
        store.update("GF1", {"is_deceased": True, "death_date": "2001-05-04"})
        manager.update_deceased_status(["GF1"], False)
        person = store.get("GF1")
        assert not person.is_deceased
        assert person.death_date is None

    def test_empty_selection(self, manager):
        assert manager.update_deceased_status([], True).message == "No persons selected."


class TestDeletePerson:
    """Tests for single and bulk deletion."""

    def test_removes_every_reference(self, manager, store):
        result = manager.delete_person("F1")
        assert result.message == "Person and all relationships removed."
        assert store.get("F1") is None
        _assert_no_references(store, {"F1"})
        assert store.get("M1").marital_status == MaritalStatus.SINGLE
        assert store.get("P").mother_id == "M1"

    def test_unknown_person_writes_nothing(self, family):
        store = RecordingStore(family)
        result = LinkIntegrityManager(store).delete_person("GONE")
        assert result.kind == FailureKind.NOT_FOUND
        assert store.calls == []
        assert len(store.get_all()) == len(family)

    def test_bulk_delete_external_spouse(self, manager, store):
        result = manager.bulk_delete(["W1", "C1"])
        assert result.message == "2 persons deleted successfully."
        _assert_no_references(store, {"W1", "C1"})
        assert store.get("P").spouse_id is None
        assert store.get("C2").mother_id is None

    def test_bulk_delete_internal_pair_skips_unlink(self, family):
        store = RecordingStore(family)
        result = LinkIntegrityManager(store).bulk_delete(["P", "W1"])
        assert result.success
        assert all("spouse_id" not in fields for _, fields in store.calls)
        assert (["C1", "C2"], ["father_id", "father_name"]) in store.calls
        assert (["C1", "C2"], ["mother_id", "mother_name"]) in store.calls
        _assert_no_references(store, {"P", "W1"})

    def test_bulk_delete_whole_family(self, manager, store, family):
        assert manager.bulk_delete(p.id for p in family).success
        assert store.get_all() == []

    def test_bulk_delete_empty(self, manager):
        assert manager.bulk_delete([]).message == "No persons selected."

    def test_bulk_delete_counts_existing_records(self, manager, store, family):
        result = manager.bulk_delete(["S", "H", "GONE"])
        assert result.message == "2 persons deleted successfully."
        assert len(store.get_all()) == len(family) - 2

    def test_bulk_delete_single_existing(self, manager):
        assert manager.bulk_delete(["S", "GONE"]).message == "1 person deleted successfully."


class TestPartialFailure:
    """Store failures midway through a delete cascade."""

    def test_transactional_rollback(self, family):
        store = FailingStore(family, fail_fields={"father_id"})
        manager = LinkIntegrityManager(store, config=KinshipConfig(transactional_cascades=True))
        result = manager.delete_person("F1")
        assert result.kind == FailureKind.STORE_FAILURE
        assert result.failed_step == "clear_father"
        assert result.message == "Failed to unlink from children (father): disk full"
        assert store.get("F1") is not None
        # The earlier spouse unlink was rolled back
        assert store.get("M1").spouse_id == "F1"

    def test_non_transactional_reports_partial_state(self, family):
        store = FailingStore(family, fail_fields={"father_id"})
        manager = LinkIntegrityManager(store, config=KinshipConfig(transactional_cascades=False))
        result = manager.delete_person("F1")
        assert result.failed_step == "clear_father"
        # Fail closed: the record survives, the completed unlink stays
        assert store.get("F1") is not None
        assert store.get("M1").spouse_id is None
        assert store.get("P").father_id == "F1"

    def test_failure_before_delete_in_bulk(self, family):
        store = FailingStore(family, fail_fields={"mother_id"})
        result = LinkIntegrityManager(store).bulk_delete(["M1", "M2"])
        assert result.failed_step == "clear_mother"
        assert store.get("M1") is not None
        assert store.get("M2") is not None


class TestSanitize:
    def test_strip_markup(self):
        assert strip_markup("<b>Asha</b> ") == "Asha"
        assert strip_markup(None) is None
        assert strip_markup("") == ""

    def test_only_text_fields(self):
        clean = sanitize_fields({"description": "<em>hi</em>", "father_id": "<F1>"})
        assert clean == {"description": "hi", "father_id": "<F1>"}
