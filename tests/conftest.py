"""Pytest configuration and fixtures for ClubManager tests.

``FakeSupabase`` is an in-memory stand-in for the Supabase client. It keeps
rows per table, understands the query builder calls the app uses and records
rpc calls. Select strings are not parsed: rows are returned whole, so nested
relations are stored directly on the row in tests that need them.
"""

import copy
import itertools
import re
from types import SimpleNamespace

import pytest

import utils.db


class FakeResponse:
    def __init__(self, data):
        self.data = data


def _lookup(row, column):
    # "matches.team_id" reads a nested relation
    value = row
    for part in column.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _ilike(pattern):
    regex = re.escape(pattern).replace("%", ".*").replace("_", ".")
    return re.compile(f"^{regex}$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.operation = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.ordering = []
        self.bounds = None
        self.max_rows = None

    # -- operations --
    def select(self, *columns, **kwargs):
        return self

    def insert(self, values, **kwargs):
        self.operation = "insert"
        self.payload = values
        return self

    def update(self, values, **kwargs):
        self.operation = "update"
        self.payload = values
        return self

    def upsert(self, values, on_conflict=None, **kwargs):
        self.operation = "upsert"
        self.payload = values
        self.on_conflict = on_conflict
        return self

    def delete(self, **kwargs):
        self.operation = "delete"
        return self

    # -- filters --
    def eq(self, column, value):
        self.filters.append(lambda row: _lookup(row, column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: _lookup(row, column) in values)
        return self

    def ilike(self, column, pattern):
        compiled = _ilike(pattern)
        self.filters.append(lambda row: compiled.match(str(_lookup(row, column) or "")) is not None)
        return self

    def match(self, criteria):
        for column, value in criteria.items():
            self.eq(column, value)
        return self

    def order(self, column, desc=False, **kwargs):
        self.ordering.append((column, desc))
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    # -- execution --
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.operation))
        failure = self.db.failures.get((self.table, self.operation))
        if failure is not None:
            raise failure
        rows = self.db.tables.setdefault(self.table, [])
        handler = getattr(self, f"_execute_{self.operation}")
        return FakeResponse(copy.deepcopy(handler(rows)))

    def _execute_select(self, rows):
        result = [row for row in rows if self._matches(row)]
        for column, desc in reversed(self.ordering):
            result.sort(key=lambda r: (_lookup(r, column) is None, _lookup(r, column)), reverse=desc)
        if self.bounds is not None:
            start, end = self.bounds
            result = result[start:end + 1]
        if self.max_rows is not None:
            result = result[:self.max_rows]
        return result

    def _new_row(self, values):
        row = dict(values)
        row.setdefault("id", next(self.db.ids))
        return row

    def _execute_insert(self, rows):
        values = self.payload if isinstance(self.payload, list) else [self.payload]
        created = [self._new_row(v) for v in values]
        rows.extend(created)
        return created

    def _execute_upsert(self, rows):
        values = self.payload if isinstance(self.payload, list) else [self.payload]
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        written = []
        for v in values:
            existing = next((r for r in rows if all(r.get(k) == v.get(k) for k in keys)), None)
            if existing is not None:
                existing.update(v)
                written.append(existing)
            else:
                row = self._new_row(v)
                rows.append(row)
                written.append(row)
        return written

    def _execute_update(self, rows):
        updated = []
        for row in rows:
            if self._matches(row):
                row.update(self.payload)
                updated.append(row)
        return updated

    def _execute_delete(self, rows):
        deleted = [row for row in rows if self._matches(row)]
        rows[:] = [row for row in rows if not self._matches(row)]
        return deleted


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        result = self.db.rpc_results.get(self.name)
        if callable(result):
            result = result(self.params)
        return FakeResponse(result)


class FakeAdmin:
    def __init__(self):
        self.created_users = []
        self.generated_links = []
        self.create_user_error = None
        self.generate_link_error = None

    def create_user(self, attributes):
        if self.create_user_error:
            raise self.create_user_error
        self.created_users.append(attributes)
        return SimpleNamespace(user=SimpleNamespace(id=f"new-user-{len(self.created_users)}", email=attributes["email"]))

    def generate_link(self, params):
        if self.generate_link_error:
            raise self.generate_link_error
        self.generated_links.append(params)
        link = f"https://auth.example.test/verify?type={params['type']}&email={params['email']}"
        return SimpleNamespace(properties=SimpleNamespace(action_link=link))


class FakeAuth:
    def __init__(self):
        self.admin = FakeAdmin()
        # access token -> user id
        self.tokens = {}

    def get_user(self, jwt=None):
        user_id = self.tokens.get(jwt)
        if user_id is None:
            raise ValueError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=f"{user_id}@example.test"))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self.rpc_calls = []
        self.rpc_results = {}
        self.ids = itertools.count(1000)
        self.auth = FakeAuth()

    @property
    def client(self):
        return self

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def seed(self, table, rows):
        self.tables.setdefault(table, []).extend(copy.deepcopy(rows))

    def rows(self, table):
        return self.tables.get(table, [])


@pytest.fixture
def fake_supabase(monkeypatch):
    """Fake client behind the anonymous connection, with no signed-in session."""
    fake = FakeSupabase()
    monkeypatch.setattr(utils.db, "supaconn", lambda: fake)
    monkeypatch.setattr(utils.db, "st", SimpleNamespace(session_state={}))
    return fake


@pytest.fixture
def evaluation_structure():
    return [
        {
            "id": 1,
            "name": "Technique",
            "order_index": 1,
            "criteria": [
                {"id": 11, "category_id": 1, "name": "Passing", "max_score": 10, "order_index": 1},
                {"id": 12, "category_id": 1, "name": "Shooting", "max_score": 10, "order_index": 2},
            ],
        },
        {
            "id": 2,
            "name": "Attitude",
            "order_index": 2,
            "criteria": [
                {"id": 21, "category_id": 2, "name": "Effort", "max_score": 5, "order_index": 1},
            ],
        },
    ]


@pytest.fixture
def new_fake_client():
    """Factory for extra fake clients, one per simulated browser session."""
    return FakeSupabase
