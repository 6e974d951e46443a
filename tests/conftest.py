# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock


# =============================================================================
# IN-MEMORY SUPABASE DOUBLE
# =============================================================================

class FakeResponse:
    """Mimics postgrest's APIResponse (only ``.data`` is used)."""

    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable table query: select/upsert/delete + eq/order/range/limit + execute."""

    def __init__(self, client: "FakeSupabase", table: str):
        self._client = client
        self._table = table
        self._op = None
        self._payload = None
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None

    def select(self, columns: str = "*"):
        self._op = "select"
        return self

    def upsert(self, record):
        self._op = "upsert"
        self._payload = record
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> FakeResponse:
        if self._client.fail:
            raise ConnectionError("network unreachable")
        self._client.calls.append((self._table, self._op))
        if self._op == "select":
            self._client.selects.append((self._table, self._order, self._range))
        rows = self._client.tables.setdefault(self._table, [])

        if self._op == "select":
            result = [dict(row) for row in rows if self._matches(row)]
            if self._order is not None:
                column, desc = self._order
                result.sort(key=lambda row: str(row.get(column, "")), reverse=desc)
            if self._range is not None:
                start, end = self._range
                result = result[start:end + 1]
            if self._limit is not None:
                result = result[:self._limit]
            return FakeResponse(result)

        if self._op == "upsert":
            records = self._payload if isinstance(self._payload, list) else [self._payload]
            for record in records:
                for index, row in enumerate(rows):
                    if row.get("id") == record.get("id"):
                        rows[index] = dict(record)
                        break
                else:
                    rows.append(dict(record))
            return FakeResponse(records)

        if self._op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self._client.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(removed)

        raise AssertionError(f"unsupported operation {self._op}")


class FakeSupabase:
    """
    Minimal synchronous Supabase client over in-memory tables.

    Set ``fail = True`` to simulate the backend becoming unreachable.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = tables or {}
        self.calls = []
        self.selects = []  # (table, order, range) per executed select
        self.fail = False

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def db_path(tmp_path):
    """Temporary SQLite file path"""
    return tmp_path / "local_data" / "csc_erp.db"


@pytest.fixture
def local_store(db_path):
    """Opened local store on a temporary file"""
    from csc_core.offline.local_store import LocalStore

    store = LocalStore(db_path).open_or_create(schema_version=1)
    yield store
    store.close()


@pytest.fixture
def fake_supabase():
    """In-memory Supabase client"""
    return FakeSupabase()


@pytest.fixture
def failing_client():
    """Supabase client whose every table call raises"""
    mock_client = MagicMock()
    mock_client.table.side_effect = ConnectionError("network unreachable")
    return mock_client


@pytest.fixture
def online_remote(fake_supabase):
    """Remote store backed by the in-memory client"""
    from csc_core.offline.remote_store import RemoteStore

    return RemoteStore(client=fake_supabase)


@pytest.fixture
def offline_remote():
    """Remote store without credentials (pure-local mode)"""
    from csc_core.offline.remote_store import RemoteStore

    return RemoteStore()


@pytest.fixture
def make_database(tmp_path):
    """Factory for Database instances on isolated SQLite files"""
    from csc_core.config import ErpConfig
    from csc_core.database import Database

    created = []

    def _make(name: str = "csc_erp.db", remote_client=None, **config_overrides):
        config = ErpConfig(local_db_path=tmp_path / name, **config_overrides)
        db = Database(config, remote_client=remote_client)
        created.append(db)
        return db

    yield _make

    for db in created:
        db.close()


# =============================================================================
# SAMPLE RECORD FIXTURES
# =============================================================================

@pytest.fixture
def sample_customer():
    from csc_core.models import Customer

    return Customer(
        id="c1",
        name="Asha Verma",
        phone="9876543210",
        aadhaar_number="123456789012",
        address="Ward 4, Regal Chowk",
        created_at="2024-05-02T10:15:00",
    )


@pytest.fixture
def sample_job():
    """Two-line job: 2 x 50 - 10 and 1 x 107, job discount 7, paid 40"""
    from csc_core.models import Job, JobItem, JobStatus

    return Job(
        id="j1",
        customer_id="c1",
        items=[
            JobItem(service_id="s1", quantity=2, unit_price=50.0, discount=10.0,
                    status=JobStatus.PENDING),
            JobItem(service_id="s2", quantity=1, unit_price=107.0,
                    status=JobStatus.IN_PROGRESS),
        ],
        discount=7.0,
        paid_amount=40.0,
        notes="Bring original documents",
        created_at="2024-05-02T10:30:00",
        updated_at="2024-05-02T10:30:00",
    )


@pytest.fixture
def sample_inventory():
    from csc_core.models import InventoryItem

    return [
        InventoryItem(id="i1", name="A4 Paper", quantity=3, unit="Reams",
                      min_stock=5, category="Stationery"),
        InventoryItem(id="i2", name="Toner", quantity=8, unit="Units",
                      min_stock=2, category="Printer"),
    ]


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Mock the Streamlit calls made by the error handlers"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    monkeypatch.setattr("csc_core.errors.handlers.st", mock_st)
    return mock_st
