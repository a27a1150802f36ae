import asyncio
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from dinefinder.storage import supabase as supabase_store
from dinefinder.storage.base import StorageError, clean_place_ids
from dinefinder.storage.memory import MemoryStore
from dinefinder.storage.supabase import SupabaseConfig, SupabaseStore


def test_clean_place_ids():
    assert clean_place_ids([" a ", "", "b", 3, None, "a", "c"]) == ["a", "b", "c"]


def test_memory_import_is_idempotent():
    store = MemoryStore()

    async def go():
        first = await store.import_place_ids("alice", ["a", "b", "b", " "])
        second = await store.import_place_ids("alice", ["a", "b"])
        return first, second, await store.list_place_ids("alice")

    first, second, ids = asyncio.run(go())
    assert (first, second) == (2, 2)
    assert ids == ["a", "b"]
    assert store.row_count("alice") == 2


def test_memory_toggle_is_per_user():
    store = MemoryStore()

    async def go():
        await store.set_visited("alice", "a", True)
        await store.set_visited("alice", "a", True)
        await store.set_visited("bob", "a", True)
        await store.set_visited("alice", "a", False)
        return await store.list_place_ids("alice"), await store.list_place_ids("bob")

    assert asyncio.run(go()) == ([], ["a"])


def test_memory_signed_lookups():
    store = MemoryStore(signed={"b"})
    assert asyncio.run(store.signed_among(["a", "b"])) == {"b"}
    assert asyncio.run(store.is_signed("b")) is True
    assert asyncio.run(store.is_signed("a")) is False


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.rows = None
        self.on_conflict = None
        self.filters = []
        self.max_rows = None

    def select(self, columns):
        self.op = "select"
        return self

    def upsert(self, rows, on_conflict=""):
        self.op, self.rows, self.on_conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    async def execute(self):
        self.db.queries.append(self)
        if self.db.error is not None:
            raise self.db.error
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "upsert":
            keys = self.on_conflict.split(",")
            for row in self.rows:
                rows[:] = [r for r in rows if any(r[k] != row[k] for k in keys)]
                rows.append(dict(row))
            return SimpleNamespace(data=list(self.rows))
        if self.op == "delete":
            gone = [r for r in rows if self._matches(r)]
            rows[:] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=gone)
        found = [{"place_id": r["place_id"]} for r in rows if self._matches(r)]
        if self.max_rows is not None:
            found = found[: self.max_rows]
        return SimpleNamespace(data=found)


class FakeSupabase:
    """Stands in for supabase.AsyncClient: tables of dict rows behind the query builder."""

    def __init__(self, signed=()):
        self.tables = {"signed_restaurants": [{"place_id": p} for p in signed]}
        self.queries = []
        self.error = None
        self.closed = False
        self.postgrest = SimpleNamespace(aclose=self._close)

    async def _close(self):
        self.closed = True

    def table(self, name):
        return FakeQuery(self, name)


CONFIG = SupabaseConfig(url="https://db.example.supabase.co", service_role_key="service-key")


def test_supabase_requires_config():
    with pytest.raises(StorageError):
        SupabaseStore(SupabaseConfig(url="", service_role_key=""))


def test_supabase_import_twice_keeps_one_row_per_place():
    db = FakeSupabase()
    store = SupabaseStore(CONFIG, client=db)

    async def go():
        n1 = await store.import_place_ids("alice", ["a", "b"])
        n2 = await store.import_place_ids("alice", ["b", " a "])
        return n1, n2, await store.list_place_ids("alice")

    n1, n2, ids = asyncio.run(go())
    assert (n1, n2) == (2, 2)
    assert sorted(ids) == ["a", "b"]
    assert len(db.tables["visited_restaurants"]) == 2
    assert db.queries[0].table == "visited_restaurants"
    assert db.queries[0].on_conflict == "user_id,place_id"


def test_supabase_empty_import_makes_no_request():
    db = FakeSupabase()
    assert asyncio.run(SupabaseStore(CONFIG, client=db).import_place_ids("alice", ["", "  "])) == 0
    assert db.queries == []


def test_supabase_toggle():
    db = FakeSupabase()
    store = SupabaseStore(CONFIG, client=db)

    async def go():
        await store.set_visited("alice", "a", True)
        await store.set_visited("alice", "b", True)
        await store.set_visited("bob", "a", True)
        await store.set_visited("alice", "a", False)
        return await store.list_place_ids("alice"), await store.list_place_ids("bob")

    assert asyncio.run(go()) == (["b"], ["a"])
    assert [q.op for q in db.queries] == ["upsert", "upsert", "upsert", "delete", "select", "select"]


def test_supabase_signed_lookups():
    db = FakeSupabase(signed=["b", "z"])
    store = SupabaseStore(CONFIG, client=db)
    assert asyncio.run(store.signed_among(["a", "b", "c"])) == {"b"}
    assert asyncio.run(store.is_signed("z")) is True
    assert asyncio.run(store.is_signed("a")) is False
    assert db.queries[-1].max_rows == 1


def test_supabase_errors_raise_storage_error():
    db = FakeSupabase()
    db.error = APIError({"message": "relation does not exist", "code": "42P01"})
    with pytest.raises(StorageError, match="relation does not exist"):
        asyncio.run(SupabaseStore(CONFIG, client=db).list_place_ids("alice"))


def test_injected_client_is_left_open():
    db = FakeSupabase()

    async def go():
        async with SupabaseStore(CONFIG, client=db) as store:
            await store.list_place_ids("alice")

    asyncio.run(go())
    assert db.closed is False


def test_owned_client_is_closed(monkeypatch):
    db = FakeSupabase()
    created = []

    async def fake_create(url, key):
        created.append((url, key))
        return db

    monkeypatch.setattr(supabase_store, "acreate_client", fake_create)

    async def go():
        async with SupabaseStore(CONFIG) as store:
            await store.set_visited("alice", "a", True)

    asyncio.run(go())
    assert created == [("https://db.example.supabase.co", "service-key")]
    assert db.closed is True
