import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("USER_PASSWORD", "pw")
os.environ.setdefault("ADMIN_PASSWORD", "pw")
os.environ.setdefault("SECRET_KEY", "test")
os.environ.setdefault("SUPABASE_URL", "http://localhost")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service")

import infocard as infocard_module
from infocard import create_app


class FakeQuery:
    def __init__(self, supabase, table_name):
        self.supabase = supabase
        self.table_name = table_name
        self._operation = None
        self._payload = None
        self._on_conflict = None
        self._filters = []
        self._limit = None

    def select(self, columns="*"):
        self._operation = "select"
        return self

    def upsert(self, payload, on_conflict=None):
        self._operation = "upsert"
        self._payload = payload
        self._on_conflict = on_conflict
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def limit(self, value):
        self._limit = value
        return self

    def execute(self):
        self.supabase.calls.append((self.table_name, self._operation))
        if self.supabase.fail:
            raise RuntimeError("supabase unavailable")
        table = self.supabase.tables.setdefault(self.table_name, [])
        if self._operation == "select":
            data = [
                dict(row)
                for row in table
                if all(row.get(column) == value for column, value in self._filters)
            ]
            if self._limit is not None:
                data = data[: self._limit]
            return SimpleNamespace(data=data, count=len(data))
        if self._operation == "upsert":
            row = dict(self._payload)
            key = self._on_conflict
            for index, existing in enumerate(table):
                if key and existing.get(key) == row.get(key):
                    table[index] = row
                    break
            else:
                table.append(row)
            return SimpleNamespace(data=[row], count=1)
        return SimpleNamespace(data=None, count=None)


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail = False

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def settings_app(monkeypatch, fake_supabase):
    monkeypatch.setattr(infocard_module, "create_client", lambda url, key: fake_supabase)
    app = create_app()
    app.testing = True
    return app, fake_supabase

