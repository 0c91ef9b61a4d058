from datetime import datetime, timezone

import pytest

from intake.core.errors import PersistenceError
from intake.db.session import Database
from intake.schemas.submission import SubmissionKind
from intake.services.submission_repository import SubmissionRepository
from tests.helpers import StepClock


def _general(name: str) -> dict:
    return {"name": name, "email": f"{name.lower()}@example.com"}


def test_list_all_returns_newest_first(database):
    repository = SubmissionRepository(database, clock=StepClock())
    for name in ("T1", "T2", "T3"):
        repository.insert(SubmissionKind.GENERAL, _general(name))

    names = [row.name for row in repository.list_all(SubmissionKind.GENERAL)]

    assert names == ["T3", "T2", "T1"]


def test_equal_timestamps_keep_insertion_order(database):
    fixed = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    repository = SubmissionRepository(database, clock=lambda: fixed)
    for name in ("first", "second", "third"):
        repository.insert(SubmissionKind.GENERAL, _general(name))

    names = [row.name for row in repository.list_all(SubmissionKind.GENERAL)]

    assert names == ["first", "second", "third"]


def test_insert_assigns_id_and_created_at(repository):
    row = repository.insert(SubmissionKind.GENERAL, _general("Ada"))

    assert row.id is not None
    assert row.kind == "general"
    assert row.created_at.replace(tzinfo=None) == datetime(2026, 1, 1)


def test_absent_optional_fields_persist_as_null(repository):
    repository.insert(SubmissionKind.GENERAL, _general("Ada"))

    (row,) = repository.list_all(SubmissionKind.GENERAL)

    assert row.mobile is None
    assert row.subject is None
    assert row.message is None
    assert row.resume_file_id is None
    assert row.resume_file_name is None


def test_kinds_are_listed_separately(repository):
    repository.insert(SubmissionKind.GENERAL, _general("General"))
    repository.insert(SubmissionKind.CONTACT, _general("Contact"))

    assert [r.name for r in repository.list_all(SubmissionKind.GENERAL)] == ["General"]
    assert [r.name for r in repository.list_all(SubmissionKind.CONTACT)] == ["Contact"]
    assert repository.count(SubmissionKind.INTERNSHIP) == 0


def test_unknown_fields_are_rejected(repository):
    with pytest.raises(ValueError, match="favourite_colour"):
        repository.insert(
            SubmissionKind.GENERAL, {**_general("Ada"), "favourite_colour": "teal"}
        )


def test_storage_fault_raises_persistence_error(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'missing-dir' / 'records.db'}")
    repository = SubmissionRepository(database)

    with pytest.raises(PersistenceError):
        repository.insert(SubmissionKind.GENERAL, _general("Ada"))
    with pytest.raises(PersistenceError):
        repository.list_all(SubmissionKind.GENERAL)
