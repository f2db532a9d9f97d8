"""
List query builder shared by every paginated endpoint.

Routes translate optional query parameters into clauses on a ListQuery;
run() compiles them into one Firestore query. Equality clauses go to
Firestore. Free-text search has no Firestore equivalent, so when a search
term is present the filtered result set is streamed and matched, sorted
and sliced in Python.

Both paths follow Firestore ordering: a document without the sortBy field
is neither listed nor counted, and mixed value types order as null,
boolean, number, timestamp, string, bytes, array, map.

Pagination contract: page defaults to 1 (floor 1), limit defaults to
DEFAULT_PAGE_LIMIT (floor 1, ceiling MAX_PAGE_LIMIT), sortDir is "asc" or
anything else meaning descending. Result: {items, total, page, limit}.
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from firebase_admin import firestore

from app.core.errors import ValidationError
from app.core.settings import settings
from app.utils.firestore_helpers import count_query, snapshot_to_dict, where_filter

_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


def normalize_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    page = max(1, page or 1)
    limit = limit or settings.DEFAULT_PAGE_LIMIT
    limit = max(1, min(settings.MAX_PAGE_LIMIT, limit))
    return page, limit


MISSING = object()


def field_value(item: Dict, path: str) -> Any:
    """Resolve a dotted field path; MISSING when any segment is absent."""
    value: Any = item
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return MISSING
        value = value[part]
    return value


def sort_key(value: Any) -> Tuple:
    """Total ordering over document values, ranked by type first."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value.timestamp())
    if isinstance(value, str):
        return (4, value)
    if isinstance(value, bytes):
        return (5, value)
    if isinstance(value, (list, tuple)):
        return (6, tuple(sort_key(element) for element in value))
    if isinstance(value, dict):
        return (7, tuple((key, sort_key(value[key])) for key in sorted(value)))
    return (8, repr(value))


class ListQuery:
    """Accumulates filter, search, sort and page clauses for one collection."""

    def __init__(self, collection: str):
        self.collection = collection
        self._clauses: List[Tuple[str, str, Any]] = []
        self._search_text: Optional[str] = None
        self._search_fields: Sequence[str] = ()
        self._sort_by = "createdAt"
        self._descending = True
        self._page, self._limit = normalize_page(None, None)

    def where(self, field: str, op: str, value: Any) -> "ListQuery":
        self._clauses.append((field, op, value))
        return self

    def where_if(self, condition: bool, field: str, op: str, value: Any) -> "ListQuery":
        if condition:
            self.where(field, op, value)
        return self

    def search(self, text: Optional[str], fields: Sequence[str]) -> "ListQuery":
        text = (text or "").strip()
        if text:
            self._search_text = text.lower()
            self._search_fields = fields
        return self

    def order(self, sort_by: Optional[str], sort_dir: Optional[str]) -> "ListQuery":
        if sort_by:
            if not _FIELD_PATTERN.match(sort_by):
                raise ValidationError(f"Invalid sortBy field: {sort_by}")
            self._sort_by = sort_by
        self._descending = (sort_dir or "desc").lower() != "asc"
        return self

    def paginate(self, page: Optional[int], limit: Optional[int]) -> "ListQuery":
        self._page, self._limit = normalize_page(page, limit)
        return self

    @property
    def clauses(self) -> List[Tuple[str, str, Any]]:
        return list(self._clauses)

    def _matches(self, item: Dict) -> bool:
        return any(
            self._search_text in str(item.get(field) or "").lower()
            for field in self._search_fields
        )

    def run(self, db, project: Optional[Callable[[Dict], Dict]] = None) -> Dict:
        query = db.collection(self.collection)
        for field, op, value in self._clauses:
            query = where_filter(query, field, op, value)

        offset = (self._page - 1) * self._limit

        if self._search_text:
            items = [snapshot_to_dict(doc) for doc in query.stream()]
            items = [
                item for item in items
                if self._matches(item) and field_value(item, self._sort_by) is not MISSING
            ]
            items.sort(key=lambda item: sort_key(field_value(item, self._sort_by)), reverse=self._descending)
            total = len(items)
            items = items[offset:offset + self._limit]
        else:
            direction = firestore.Query.DESCENDING if self._descending else firestore.Query.ASCENDING
            ordered = query.order_by(self._sort_by, direction=direction)
            total = count_query(ordered)
            items = [snapshot_to_dict(doc) for doc in ordered.offset(offset).limit(self._limit).stream()]

        if project is not None:
            items = [project(item) for item in items]

        return {
            "items": items,
            "total": total,
            "page": self._page,
            "limit": self._limit,
        }
