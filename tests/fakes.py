"""
In-memory stand-in for the Firestore client subset the services use.

Supports collections, document create/set/update/delete, update-time
preconditions, Increment transforms, equality queries with ordering,
offset/limit and count aggregation, and all-or-nothing write batches.
"""

import copy
import itertools
from types import SimpleNamespace

from firebase_admin import firestore
from google.api_core import exceptions as gcloud_exceptions

from app.utils.query_builder import MISSING, field_value, sort_key

_clock = itertools.count(1)


def _apply_changes(current, changes):
    data = copy.deepcopy(current)
    for key, value in changes.items():
        if isinstance(value, firestore.Increment):
            data[key] = (data.get(key) or 0) + value.value
        else:
            data[key] = copy.deepcopy(value)
    return data


class FakeSnapshot:
    def __init__(self, reference, data, update_time, field_paths=None):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data) if data is not None else None
        if self._data is not None and field_paths is not None:
            self._data = {key: value for key, value in self._data.items() if key in field_paths}
        self.update_time = update_time

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field):
        return copy.deepcopy((self._data or {}).get(field))


class FakeDocumentReference:
    def __init__(self, store, collection, doc_id):
        self._store = store
        self._collection = collection
        self.id = doc_id

    @property
    def _key(self):
        return (self._collection, self.id)

    def _check_precondition(self, option):
        if option is None:
            return
        record = self._store.docs.get(self._key)
        if record is None:
            raise gcloud_exceptions.NotFound(f"{self._collection}/{self.id}")
        if record["update_time"] != option.last_update_time:
            raise gcloud_exceptions.FailedPrecondition("update_time mismatch")

    def _check_create(self):
        if self._key in self._store.docs:
            raise gcloud_exceptions.AlreadyExists(f"{self._collection}/{self.id}")

    def _check_update(self, option=None):
        if self._key not in self._store.docs:
            raise gcloud_exceptions.NotFound(f"{self._collection}/{self.id}")
        self._check_precondition(option)

    def _write(self, data):
        self._store.docs[self._key] = {"data": data, "update_time": next(_clock)}

    def get(self, field_paths=None):
        record = self._store.docs.get(self._key)
        if record is None:
            return FakeSnapshot(self, None, None)
        return FakeSnapshot(self, record["data"], record["update_time"], field_paths)

    def create(self, data):
        self._check_create()
        self._write(copy.deepcopy(data))

    def set(self, data):
        self._write(copy.deepcopy(data))

    def update(self, changes, option=None):
        self._check_update(option)
        self._write(_apply_changes(self._store.docs[self._key]["data"], changes))

    def delete(self, option=None):
        self._check_precondition(option)
        self._store.docs.pop(self._key, None)


class FakeQuery:
    def __init__(self, store, collection, filters=(), order=None, offset=0, limit=None):
        self._store = store
        self._collection = collection
        self._filters = tuple(filters)
        self._order = order
        self._offset = offset
        self._limit = limit

    def _copy(self, **overrides):
        params = {
            "filters": self._filters,
            "order": self._order,
            "offset": self._offset,
            "limit": self._limit,
        }
        params.update(overrides)
        return FakeQuery(self._store, self._collection, **params)

    def where(self, field, op, value):
        if op != "==":
            raise NotImplementedError(f"Unsupported operator: {op}")
        return self._copy(filters=self._filters + ((field, value),))

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(order=(field, direction))

    def offset(self, count):
        return self._copy(offset=count)

    def limit(self, count):
        return self._copy(limit=count)

    def _matching(self):
        refs = []
        for (collection, doc_id), record in self._store.docs.items():
            if collection != self._collection:
                continue
            if all(record["data"].get(field) == value for field, value in self._filters):
                refs.append(FakeDocumentReference(self._store, collection, doc_id))

        if self._order is not None:
            field, direction = self._order
            # documents without the order field are excluded, as in Firestore
            refs = [ref for ref in refs if field_value(self._store.docs[ref._key]["data"], field) is not MISSING]
            refs.sort(
                key=lambda ref: sort_key(field_value(self._store.docs[ref._key]["data"], field)),
                reverse=direction == firestore.Query.DESCENDING,
            )

        refs = refs[self._offset:]
        if self._limit is not None:
            refs = refs[:self._limit]
        return refs

    def stream(self):
        for ref in self._matching():
            yield ref.get()

    def count(self, alias=None):
        total = len(self._matching())
        return SimpleNamespace(get=lambda: [[SimpleNamespace(alias=alias, value=total)]])


class FakeCollection(FakeQuery):
    def __init__(self, store, name):
        super().__init__(store, name)
        self.id = name

    def document(self, doc_id):
        return FakeDocumentReference(self._store, self._collection, doc_id)


class FakeWriteBatch:
    def __init__(self):
        self._ops = []

    def create(self, reference, data):
        self._ops.append(("create", reference, data, None))

    def set(self, reference, data):
        self._ops.append(("set", reference, data, None))

    def update(self, reference, changes, option=None):
        self._ops.append(("update", reference, changes, option))

    def delete(self, reference, option=None):
        self._ops.append(("delete", reference, None, option))

    def commit(self):
        for action, reference, _, option in self._ops:
            if action == "create":
                reference._check_create()
            elif action == "update":
                reference._check_update(option)
            elif action == "delete":
                reference._check_precondition(option)
        for action, reference, data, option in self._ops:
            if action == "create":
                reference.create(data)
            elif action == "set":
                reference.set(data)
            elif action == "update":
                reference.update(data)
            else:
                reference.delete()
        self._ops = []


class FakeFirestore:
    def __init__(self):
        self.docs = {}

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeWriteBatch()

    def write_option(self, last_update_time=None):
        return SimpleNamespace(last_update_time=last_update_time)

    # test helpers

    def put(self, collection, doc_id, data):
        self.collection(collection).document(doc_id).set(data)
        return doc_id

    def read(self, collection, doc_id):
        return self.collection(collection).document(doc_id).get().to_dict()
