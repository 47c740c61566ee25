"""
Shared pytest fixtures.

Provides:
- FakeSupabase: in-memory stand-in for the Supabase query builder and auth API
- A seeded organisation with one member per hierarchy level
- An API client wired to the fake through dependency overrides
"""

import copy
import itertools
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from rosta.database.supabase_client import get_supabase, get_supabase_admin
from rosta.main import app
from rosta.modules.auth.service import clear_auth_cache


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table_name):
        self.db = db
        self.table_name = table_name
        self.op = "select"
        self.payload = None
        self.filters = []
        self._order = None
        self._limit = None

    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, lambda v, value=value: v == value))
        return self

    def in_(self, column, values):
        self.filters.append((column, lambda v, values=tuple(values): v in values))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(check(row.get(column)) for column, check in self.filters)

    def execute(self):
        if self.table_name in self.db.failing_tables:
            raise Exception(f"{self.table_name} unavailable")
        if (self.op, self.table_name) in self.db.fail_once:
            self.db.fail_once.discard((self.op, self.table_name))
            raise Exception(f"{self.op} on {self.table_name} failed")
        rows = self.db.tables.setdefault(self.table_name, [])
        self.db.calls.append((self.op, self.table_name, copy.deepcopy(self.payload)))

        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for row in new_rows:
                row = {"id": f"{self.table_name}-{next(self.db.ids)}", **row}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResult(inserted)

        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
        elif self.op == "delete":
            self.db.tables[self.table_name] = [row for row in rows if not self._matches(row)]
        else:
            if self._order:
                column, desc = self._order
                matched = sorted(matched, key=lambda r: r.get(column) or "", reverse=desc)
            if self._limit is not None:
                matched = matched[:self._limit]
        return FakeResult(copy.deepcopy(matched))


class FakeAuth:
    def __init__(self, db):
        self.db = db

    def get_user(self, jwt=None):
        user_id = self.db.tokens.get(jwt)
        if user_id is None:
            raise Exception("invalid JWT: token is malformed")
        return SimpleNamespace(user=SimpleNamespace(
            id=user_id,
            email=f"{user_id}@example.com",
            user_metadata={"full_name": user_id},
            app_metadata={},
        ))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.tokens = {}
        self.calls = []
        self.failing_tables = set()
        self.fail_once = set()  # (op, table) pairs that fail on their next execute
        self.ids = itertools.count(1)
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def row(self, name, row_id):
        return next(r for r in self.rows(name) if r["id"] == row_id)


def _member(member_id, user_id, level, created_at, org="org-1", **extra):
    return {
        "id": member_id,
        "user_id": user_id,
        "organisation_id": org,
        "hierarchy_level": level,
        "full_name": member_id.replace("tm-", "").upper(),
        "status": "active",
        "primary_venue_id": None,
        "can_invite_managers": False,
        "created_at": created_at,
        **extra,
    }


@pytest.fixture
def db():
    fake = FakeSupabase()
    fake.tables["organisations"] = [
        {"id": "org-1", "owner_id": "owner", "name": "The Anchor"},
        {"id": "org-2", "owner_id": "other-owner", "name": "The Crown"},
    ]
    fake.tables["team_members"] = [
        _member("tm-gm", "user-gm", "gm", "2024-01-01"),
        _member("tm-agm", "user-agm", "agm", "2024-01-02"),
        _member("tm-sl", "user-sl", "shift_leader", "2024-01-03"),
        _member("tm-worker", "user-worker", "worker", "2024-01-04"),
        _member("tm-odd", "user-odd", "Supervisor", "2024-01-05"),
        _member("tm-other", "user-other", "worker", "2024-01-06", org="org-2"),
    ]
    fake.tables["permissions"] = []
    for user_id in ("owner", "other-owner", "user-gm", "user-agm", "user-sl",
                    "user-worker", "user-odd", "user-other", "outsider"):
        fake.tokens[f"token-{user_id}"] = user_id
    return fake


@pytest.fixture
def client(db):
    clear_auth_cache()
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_supabase_admin] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture
def auth():
    def _headers(user_id):
        return {"Authorization": f"Bearer token-{user_id}"}
    return _headers
