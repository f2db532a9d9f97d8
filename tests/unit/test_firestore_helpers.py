"""Unit tests for id handling and guarded writes."""

import pytest

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.utils.firestore_helpers import (
    find_one, get_snapshot, guarded_update, is_valid_id, new_document_id, require_valid_id,
)
from tests.fakes import FakeFirestore


class TestIds:
    def test_generated_ids_are_valid(self) -> None:
        doc_id = new_document_id()
        assert len(doc_id) == 24
        assert is_valid_id(doc_id)

    @pytest.mark.parametrize("value", [None, "", "xyz", "g" * 24, "a" * 23, 42])
    def test_invalid_ids(self, value) -> None:
        assert not is_valid_id(value)
        with pytest.raises(ValidationError):
            require_valid_id(value, "issue id")


class TestGuardedUpdate:
    def test_lost_update_is_a_conflict(self) -> None:
        db = FakeFirestore()
        db.put("issues", "a" * 24, {"title": "Pothole"})
        stale = get_snapshot(db.collection("issues"), "a" * 24, "Issue")

        db.collection("issues").document("a" * 24).update({"title": "Pothole on MG Road"})

        with pytest.raises(ConflictError):
            guarded_update(db, stale, {"title": "Overwritten"}, "Issue")
        assert db.read("issues", "a" * 24)["title"] == "Pothole on MG Road"

    def test_fresh_snapshot_applies(self) -> None:
        db = FakeFirestore()
        db.put("issues", "a" * 24, {"title": "Pothole"})
        snapshot = get_snapshot(db.collection("issues"), "a" * 24, "Issue")

        guarded_update(db, snapshot, {"title": "Fixed"}, "Issue")
        assert db.read("issues", "a" * 24)["title"] == "Fixed"

    def test_missing_document(self) -> None:
        with pytest.raises(NotFoundError):
            get_snapshot(FakeFirestore().collection("issues"), "a" * 24, "Issue")


def test_find_one() -> None:
    db = FakeFirestore()
    db.put("users", "b" * 24, {"email": "rep@example.com"})
    assert find_one(db.collection("users"), "email", "rep@example.com")["id"] == "b" * 24
    assert find_one(db.collection("users"), "email", "other@example.com") is None
