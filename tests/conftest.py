import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient


@dataclass
class FakeResult:
    data: List[Dict[str, Any]]


class FakeQuery:
    """Just enough of the supabase/postgrest builder chain for the API"""

    def __init__(self, db: 'FakeSupabase', table: str):
        self._db = db
        self._table = table
        self._op = 'select'
        self._columns = '*'
        self._payload: Any = None
        self._filters: List[Callable[[Dict], bool]] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = '*'):
        self._op, self._columns = 'select', columns
        return self

    def insert(self, payload):
        self._op, self._payload = 'insert', payload
        return self

    def update(self, payload):
        self._op, self._payload = 'update', payload
        return self

    def delete(self):
        self._op = 'delete'
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    def _project(self, row):
        if self._columns.strip() == '*':
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self._columns.split(',')]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self) -> FakeResult:
        if self._db.fail_on == (self._table, self._op):
            raise RuntimeError(f"{self._table}.{self._op} failed")
        self._db.calls.append((self._table, self._op))
        rows = self._db.tables.setdefault(self._table, [])

        if self._op == 'insert':
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                row = {'id': str(uuid.uuid4()), 'created_at': datetime.utcnow().isoformat(), **payload}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResult(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self._op == 'update':
            for row in matched:
                row.update(self._payload)
            return FakeResult(copy.deepcopy(matched))

        if self._op == 'delete':
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResult(copy.deepcopy(matched))

        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda row: row.get(column) or '', reverse=desc)
        if self._limit is not None:
            matched = matched[:self._limit]
        return FakeResult([self._project(row) for row in matched])


@dataclass
class FakeSupabase:
    tables: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    calls: List[tuple] = field(default_factory=list)
    fail_on: Optional[tuple] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def writes(self) -> List[tuple]:
        return [call for call in self.calls if call[1] in ('insert', 'update', 'delete')]


class FakeSubscriptions:
    def __init__(self):
        self.created: List[Dict] = []
        self.cancelled: List[tuple] = []

    def create(self, data):
        self.created.append(data)
        return {'id': 'sub_test123', 'status': 'created', 'plan_id': data['plan_id']}

    def cancel(self, subscription_id, data):
        self.cancelled.append((subscription_id, data))
        return {'id': subscription_id, 'status': 'active', 'has_scheduled_changes': True}


class FakeRazorpay:
    def __init__(self):
        self.subscription = FakeSubscriptions()


@pytest.fixture()
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def fake_payments() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture()
def user(fake_db) -> Dict[str, Any]:
    row = {
        'id': 'user-1',
        'name': 'Asha',
        'email': 'asha@example.com',
        'password_hash': '',
        'plan': 'free',
        'subscription_id': None,
        'subscription_status': 'none',
        'created_at': '2024-01-01T00:00:00',
    }
    fake_db.tables.setdefault('users', []).append(row)
    return row


@pytest.fixture()
def payment_secrets(monkeypatch):
    from utils.settings import settings

    monkeypatch.setattr(settings, 'razorpay_key_id', 'rzp_test_key')
    monkeypatch.setattr(settings, 'razorpay_key_secret', 'key_secret')
    monkeypatch.setattr(settings, 'razorpay_webhook_secret', 'webhook_secret')
    return settings


@pytest.fixture()
def client(fake_db, fake_payments, user, payment_secrets):
    from main import app
    from api.auth import get_current_user
    from database.supabase_client import get_db
    from models.schemas import UserResponse
    from payments.razorpay_client import get_payments

    def current_user():
        row = next(r for r in fake_db.tables['users'] if r['id'] == user['id'])
        return UserResponse(**row)

    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_payments] = lambda: fake_payments
    app.dependency_overrides[get_current_user] = current_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
