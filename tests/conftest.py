# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: an in-memory stand-in for the supabase-py query builder,
#   installed with SupabaseClient.set_client()
# - Sample Arketa CSV exports
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import copy
from types import SimpleNamespace

import pytest

from lib.supabase_client import SupabaseClient


# =============================================================================
# In-memory Supabase
# =============================================================================

class FakeQuery:
    """Chainable query that mimics the parts of postgrest-py the app uses."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.filters: list[tuple[str, object]] = []
        self.order_by: tuple[str, bool] | None = None
        self.bounds: tuple[int, int] | None = None
        self.max_rows: int | None = None
        self.single_row = False

    def select(self, columns="*"):
        self.action = "select"
        return self

    def insert(self, data):
        self.action = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.action = "update"
        self.payload = data
        return self

    def upsert(self, data, on_conflict=None):
        self.action = "upsert"
        self.payload = data
        self.on_conflict = on_conflict
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def single(self):
        self.single_row = True
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if self.table in self.db.failing_tables:
            raise Exception(f"relation {self.table} is unavailable")

        self.db.calls.append((self.table, self.action))
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            return SimpleNamespace(data=[self.db.add_row(self.table, self.payload)])

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.action == "upsert":
            key = self.on_conflict
            for row in rows:
                if key and row.get(key) == self.payload.get(key):
                    row.update(copy.deepcopy(self.payload))
                    return SimpleNamespace(data=[copy.deepcopy(row)])
            return SimpleNamespace(data=[self.db.add_row(self.table, self.payload)])

        result = [copy.deepcopy(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self.bounds:
            start, end = self.bounds
            result = result[start:end + 1]
        if self.max_rows is not None:
            result = result[:self.max_rows]

        if self.single_row:
            if len(result) != 1:
                raise Exception(
                    "{'code': 'PGRST116', 'message': 'JSON object requested, "
                    "multiple (or no) rows returned'}"
                )
            return SimpleNamespace(data=result[0])

        return SimpleNamespace(data=result)


class FakeSupabase:
    """
    Minimal in-memory Supabase client.

    Tables are lists of dicts; inserted rows without an `id` get one.
    Tables named in `failing_tables` raise on every query.
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.failing_tables: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self._next_id = 1

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def add_row(self, table: str, data: dict) -> dict:
        row = copy.deepcopy(data)
        if "id" not in row:
            row["id"] = self._next_id
            self._next_id += 1
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """Install a fresh FakeSupabase as the shared client."""
    db = FakeSupabase()
    SupabaseClient.set_client(db)
    yield db
    SupabaseClient.set_client(None)


@pytest.fixture
def client_list_csv():
    """Arketa client list export with three clients."""
    return (
        "first_name,last_name,client_email,status,total_lifetime_value,last_seen,first_seen,marketing_email_opt_in\n"
        "Ana,Lopez,ana@example.com,drop_in,120.00,2024-05-01,2024-01-10,TRUE\n"
        "Ben,Okafor,ben@example.com,prospect,0,,,false\n"
        "Cara,Smith,cara@example.com,intro_trial,45,2024-05-20,2024-05-10,yes\n"
    )


@pytest.fixture
def attendance_csv():
    """Arketa attendance export matching client_list_csv."""
    return (
        "client_email,first_class_date,last_class_date,last_pricing_option_used,total_classes_attended\n"
        "ana@example.com,2024-01-10,2024-05-01,10 Class Pack,12\n"
        "BEN@example.com,,,,0\n"
        "cara@example.com,2024-05-10,2024-05-20,Intro Month,3\n"
    )


@pytest.fixture
def customer_rows():
    """customers rows as stored in the database (used by analytics tests)."""
    return [
        {
            "id": 1, "first_name": "Ana", "last_name": "Lopez", "client_email": "ana@example.com",
            "status": "drop_in", "source": "Arketa", "total_lifetime_value": 120.0,
            "first_seen": "2024-01-10T00:00:00+00:00", "last_seen": "2024-05-29T00:00:00+00:00",
            "first_class_date": "2024-01-10", "last_class_date": "2024-05-29",
            "created_at": "2024-01-10T00:00:00+00:00", "updated_at": "2024-05-29T00:00:00+00:00",
            "marketing_email_opt_in": True, "agree_to_liability_waiver": True,
            "birthday": "1990-06-15", "phone_number": "555-0101",
        },
        {
            "id": 2, "first_name": "Ben", "last_name": "Okafor", "client_email": "ben@example.com",
            "status": "prospect", "source": "ClassPass", "total_lifetime_value": 0,
            "first_seen": None, "last_seen": None,
            "first_class_date": None, "last_class_date": None,
            "created_at": "2024-05-25T00:00:00+00:00", "updated_at": "2024-05-25T00:00:00+00:00",
            "marketing_email_opt_in": False, "agree_to_liability_waiver": False,
        },
        {
            "id": 3, "first_name": "Cara", "last_name": "Smith", "client_email": "cara@example.com",
            "status": "intro_trial", "source": "Instagram", "total_lifetime_value": 45.0,
            "first_seen": "2024-04-01T00:00:00+00:00", "last_seen": "2024-04-28T00:00:00+00:00",
            "first_class_date": "2024-04-01", "last_class_date": "2024-04-28",
            "intro_start_date": "2024-05-20", "intro_end_date": "2024-06-03",
            "created_at": "2024-04-01T00:00:00+00:00", "updated_at": "2024-04-28T00:00:00+00:00",
            "marketing_email_opt_in": "true", "agree_to_liability_waiver": False,
        },
        {
            "id": 4, "first_name": "Dev", "last_name": "Patel", "client_email": "dev@example.com",
            "status": "membership", "source": "Arketa", "total_lifetime_value": 900.0,
            "first_seen": "2023-06-01T00:00:00+00:00", "last_seen": "2024-05-31T00:00:00+00:00",
            "first_class_date": "2023-06-01", "last_class_date": "2024-05-31",
            "conversion_date": "2023-06-20",
            "created_at": "2023-06-01T00:00:00+00:00", "updated_at": "2024-05-31T00:00:00+00:00",
            "marketing_email_opt_in": True, "agree_to_liability_waiver": False,
        },
    ]
