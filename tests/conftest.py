from __future__ import annotations
import copy
import itertools
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from tracker_backend.app import config
from tracker_backend.app.services.supabase_service import SupabaseService, set_supabase_service


def _same(a: Any, b: Any) -> bool:
    # PostgREST compares on the column type; URL params arrive as strings
    if a is None or b is None:
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b or str(a).lower() == str(b).lower()
    return a == b or str(a) == str(b)


class FakeQuery:
    """Just enough of the postgrest request builder for the service layer."""

    def __init__(self, client: "FakeClient", table: str) -> None:
        self.client = client
        self.table = table
        self.mode = 'select'
        self.columns = '*'
        self.payload: Any = None
        self.filters: List = []
        self.ordering = None
        self.limit_n = None
        self.window = None
        self._negate = False

    # verbs
    def select(self, columns: str = '*'):
        self.mode, self.columns = 'select', columns
        return self

    def insert(self, payload):
        self.mode, self.payload = 'insert', payload
        return self

    def update(self, payload):
        self.mode, self.payload = 'update', payload
        return self

    def delete(self):
        self.mode = 'delete'
        return self

    # filters
    @property
    def not_(self):
        self._negate = True
        return self

    def _filter(self, pred):
        negate, self._negate = self._negate, False
        self.filters.append((lambda r: not pred(r)) if negate else pred)
        return self

    def eq(self, col, value):
        return self._filter(lambda r: _same(r.get(col), value))

    def gte(self, col, value):
        return self._filter(lambda r: r.get(col) is not None and str(r.get(col)) >= str(value))

    def lte(self, col, value):
        return self._filter(lambda r: r.get(col) is not None and str(r.get(col)) <= str(value))

    def lt(self, col, value):
        return self._filter(lambda r: r.get(col) is not None and str(r.get(col)) < str(value))

    def is_(self, col, value):
        assert value in ('null', None)
        return self._filter(lambda r: r.get(col) is None)

    def order(self, col, desc=False):
        self.ordering = (col, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def execute(self):
        if (self.table, self.mode) in self.client.failing:
            raise RuntimeError(f"simulated failure: {self.mode} {self.table}")
        rows = self.client.tables.setdefault(self.table, [])
        if self.mode == 'insert':
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in items:
                row = {"id": str(uuid.uuid4()), "created_at": self.client.next_timestamp(), **copy.deepcopy(item)}
                rows.append(row)
                out.append(copy.deepcopy(row))
            return SimpleNamespace(data=out)

        matched = [r for r in rows if all(f(r) for f in self.filters)]
        if self.mode == 'update':
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))
        if self.mode == 'delete':
            self.client.tables[self.table] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.ordering:
            col, desc = self.ordering
            matched = sorted(matched, key=lambda r: (r.get(col) is None, str(r.get(col))), reverse=desc)
        if self.window:
            matched = matched[self.window[0]:self.window[1] + 1]
        if self.limit_n is not None:
            matched = matched[:self.limit_n]
        if self.columns.strip() != '*':
            cols = [c.strip() for c in self.columns.split(',')]
            matched = [{c: r.get(c) for c in cols} for r in matched]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeAuth:
    def __init__(self) -> None:
        self.tokens: Dict[str, str] = {}

    def get_user(self, token: str):
        uid = self.tokens.get(token)
        if uid is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user={"id": uid, "email": f"{uid}@example.com"})


class FakeClient:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failing: set = set()
        self.auth = FakeAuth()
        self._clock = itertools.count(1)

    def next_timestamp(self) -> str:
        return f"2026-01-01T00:00:00.{next(self._clock):06d}+00:00"

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def add(self, name: str, **row) -> Dict[str, Any]:
        return self.table(name).insert(row).execute().data[0]


@pytest.fixture
def fake():
    return FakeClient()


@pytest.fixture
def sb(fake):
    service = SupabaseService(client=fake)
    set_supabase_service(service)
    yield service
    set_supabase_service(None)


@pytest.fixture
def user(fake):
    return fake.add('users', id='user-1', height_cm=175, age=30, gender='male', steps_goal=10000)


@pytest.fixture
def client(sb, monkeypatch):
    from tracker_backend.app.flask_app import create_app
    monkeypatch.setattr(config, 'REQUIRE_JWT', False)
    monkeypatch.setattr(config, 'DEMO_USER_ID', '')
    app = create_app()
    app.config.update(TESTING=True)
    return app.test_client()
