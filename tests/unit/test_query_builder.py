"""Unit tests for pagination, filtering and search in ListQuery."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ValidationError
from app.utils.query_builder import ListQuery, normalize_page, sort_key
from tests.fakes import FakeFirestore

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def citizens_db() -> FakeFirestore:
    db = FakeFirestore()
    for n in range(25):
        db.put("citizens", f"{n:024x}", {
            "address": f"{n} Station Road" if n % 5 == 0 else f"{n} Market Street",
            "wardId": "a" * 24 if n % 2 == 0 else "b" * 24,
            "createdAt": BASE + timedelta(minutes=n),
        })
    return db


class TestNormalizePage:
    @pytest.mark.parametrize("page,limit,expected", [
        (None, None, (1, 20)),
        (0, 0, (1, 20)),
        (-3, 5, (1, 5)),
        (2, 500, (2, 100)),
        (4, -1, (4, 1)),
    ])
    def test_bounds(self, page, limit, expected) -> None:
        assert normalize_page(page, limit) == expected


class TestListQuery:
    def test_last_partial_page(self, citizens_db: FakeFirestore) -> None:
        result = ListQuery("citizens").paginate(3, 10).run(citizens_db)

        assert result["total"] == 25
        assert result["page"] == 3
        assert result["limit"] == 10
        assert len(result["items"]) == 5

    def test_default_sort_is_newest_first(self, citizens_db: FakeFirestore) -> None:
        items = ListQuery("citizens").run(citizens_db)["items"]
        created = [item["createdAt"] for item in items]
        assert created == sorted(created, reverse=True)

    def test_ascending_sort(self, citizens_db: FakeFirestore) -> None:
        items = ListQuery("citizens").order("createdAt", "asc").paginate(1, 3).run(citizens_db)["items"]
        assert [item["id"] for item in items] == [f"{n:024x}" for n in range(3)]

    def test_equality_filter(self, citizens_db: FakeFirestore) -> None:
        result = ListQuery("citizens").where("wardId", "==", "a" * 24).run(citizens_db)
        assert result["total"] == 13

    def test_search_is_case_insensitive(self, citizens_db: FakeFirestore) -> None:
        result = ListQuery("citizens").search("station", ("address",)).paginate(1, 2).run(citizens_db)
        assert result["total"] == 5
        assert len(result["items"]) == 2
        assert all("Station" in item["address"] for item in result["items"])

    def test_blank_search_is_ignored(self, citizens_db: FakeFirestore) -> None:
        assert ListQuery("citizens").search("   ", ("address",)).run(citizens_db)["total"] == 25

    def test_rejects_bad_sort_field(self) -> None:
        with pytest.raises(ValidationError):
            ListQuery("citizens").order("createdAt desc; drop", None)

    def test_projection(self, citizens_db: FakeFirestore) -> None:
        result = ListQuery("citizens").paginate(1, 1).run(citizens_db, project=lambda item: {"id": item["id"]})
        assert list(result["items"][0]) == ["id"]


class TestSortOrdering:
    def test_search_sorts_by_map_field(self) -> None:
        db = FakeFirestore()
        db.put("issues", "a" * 24, {"title": "Pothole north", "location": {"latitude": 18.6, "longitude": 73.8}})
        db.put("issues", "b" * 24, {"title": "Pothole south", "location": {"latitude": 18.4, "longitude": 73.8}})

        items = ListQuery("issues").search("pothole", ("title",)).order("location", "asc").run(db)["items"]

        assert [item["id"] for item in items] == ["b" * 24, "a" * 24]

    def test_dotted_sort_field(self) -> None:
        db = FakeFirestore()
        db.put("issues", "a" * 24, {"title": "Pothole", "location": {"latitude": 18.6}})
        db.put("issues", "b" * 24, {"title": "Pothole", "location": {"latitude": 18.4}})

        for text in (None, "pothole"):
            items = ListQuery("issues").search(text, ("title",)).order("location.latitude", "desc").run(db)["items"]
            assert [item["id"] for item in items] == ["a" * 24, "b" * 24]

    def test_mixed_types_order_by_type(self) -> None:
        values = ["text", 3, None, {"a": 1}, [1, 2], True, BASE]
        ordered = sorted(values, key=sort_key)
        assert ordered == [None, True, 3, BASE, "text", [1, 2], {"a": 1}]

    def test_documents_without_sort_field_are_not_counted(self, citizens_db: FakeFirestore) -> None:
        citizens_db.put("citizens", "f" * 24, {"address": "1 Station Road", "nickname": "Ravi",
                                               "createdAt": BASE})

        plain = ListQuery("citizens").order("nickname", None).run(citizens_db)
        searched = ListQuery("citizens").search("road", ("address",)).order("nickname", None).run(citizens_db)

        assert plain["total"] == len(plain["items"]) == 1
        assert searched["total"] == len(searched["items"]) == 1
