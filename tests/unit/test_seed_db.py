"""Unit tests for the reference-data seed script."""

from scripts.seed_db import validate_seed, write_to_db
from tests.fakes import FakeFirestore


def test_validate_rejects_owned_collections() -> None:
    problems = validate_seed({"issues": {"a" * 24: {"title": "x"}}})
    assert len(problems) == 1
    assert "cannot be seeded" in problems[0]


def test_validate_checks_ids_and_names() -> None:
    problems = validate_seed({"wards": {"ward-1": {"name": "Kothrud"}, "b" * 24: {}}})
    assert len(problems) == 2


def test_dry_run_writes_nothing() -> None:
    db = FakeFirestore()
    assert write_to_db(db, {"wards": {"a" * 24: {"name": "Kothrud"}}}) == 0
    assert db.read("wards", "a" * 24) is None


def test_apply() -> None:
    db = FakeFirestore()
    written = write_to_db(db, {
        "wards": {"a" * 24: {"name": "Kothrud"}},
        "workers": {"b" * 24: {"name": "Ramesh"}},
    }, apply=True)

    assert written == 2
    assert db.read("wards", "a" * 24)["name"] == "Kothrud"
