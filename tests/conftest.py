import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from kopkkj import create_app
from kopkkj.config import TestingConfig
from kopkkj.members.pin import hash_pin

MEMBER_PIN = "135790"


def _like(pattern):
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """Just enough of the postgrest query builder for the portal's calls."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = []
        self.row_limit = None
        self.count = None

    def select(self, columns="*", count=None):
        self.action = "select"
        self.count = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def _filter(self, fn):
        self.filters.append(fn)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(lambda row: row.get(column) in values)

    def gt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) > value)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) < value)

    def lte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) <= value)

    def ilike(self, column, pattern):
        regex = _like(pattern)
        return self._filter(lambda row: regex.match(str(row.get(column) or "")) is not None)

    def order(self, column, desc=False):
        self.order_by.append((column, desc))
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def _matching(self):
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.log.append((self.action, self.table, copy.deepcopy(self.payload)))
        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.add(self.table, **item) for item in items]
            return SimpleNamespace(data=copy.deepcopy(inserted), count=None)
        if self.action == "update":
            matched = self._matching()
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)
        if self.action == "delete":
            matched = self._matching()
            self.db.tables[self.table] = [row for row in self.db.tables[self.table] if row not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        result = self._matching()
        for column, desc in reversed(self.order_by):
            result = sorted(result, key=lambda row: (row.get(column) is None, str(row.get(column))), reverse=desc)
        total = len(result)
        if self.row_limit is not None:
            result = result[: self.row_limit]
        return SimpleNamespace(data=copy.deepcopy(result), count=total if self.count else None)


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        if self.name in self.db.rpc_errors:
            raise APIError({"message": self.db.rpc_errors[self.name], "code": "P0001", "details": None, "hint": None})
        return SimpleNamespace(data=self.db.rpc_results.get(self.name))


class FakeBucket:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def upload(self, path, content, options=None):
        self.db.uploads.append((self.name, path, len(content), (options or {}).get("content-type")))
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"


class FakeAuth:
    def __init__(self, db):
        self.db = db
        self.accounts = {}
        self.signed_out = 0
        self.sign_ups = []

    def add_account(self, email, password, user_id):
        self.accounts[email] = (password, user_id)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if not account or account[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id=account[1], email=credentials["email"]),
            session=SimpleNamespace(access_token="access-token"),
        )

    def sign_up(self, credentials):
        if credentials["email"] in self.accounts:
            raise Exception("User already registered")
        user_id = str(uuid.uuid4())
        self.accounts[credentials["email"]] = (credentials["password"], user_id)
        self.sign_ups.append(credentials)
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=credentials["email"]), session=None)

    def sign_out(self):
        self.signed_out += 1


class FakeStorage:
    def __init__(self, db):
        self.db = db

    def from_(self, bucket):
        return FakeBucket(self.db, bucket)


class FakeSupabase:
    """In-memory stand-in for the supabase client: tables, rpc, storage and auth."""

    def __init__(self):
        self.tables = {}
        self.log = []
        self.rpc_calls = []
        self.rpc_results = {}
        self.rpc_errors = {}
        self.uploads = []
        self.storage = FakeStorage(self)
        self.auth = FakeAuth(self)
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def add(self, table, **row):
        self._clock += timedelta(seconds=1)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self._clock.isoformat())
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table, **filters):
        return [
            row for row in self.tables.get(table, [])
            if all(row.get(k) == v for k, v in filters.items())
        ]

    def one(self, table, **filters):
        found = self.rows(table, **filters)
        return found[0] if found else None

    def writes(self, table):
        return [entry for entry in self.log if entry[1] == table and entry[0] != "select"]


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def app(db):
    app = create_app(TestingConfig)
    app.extensions["supabase"] = db
    app.extensions["supabase_auth"] = db
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login_as(client, profile):
    with client.session_transaction() as sess:
        sess["user_id"] = profile["id"]
        sess["email"] = profile.get("email")
        sess["role"] = profile.get("role", "member")


@pytest.fixture
def member(db):
    return db.add(
        "profiles",
        email="sari@example.com",
        full_name="Sari Wulandari",
        phone="081234567890",
        member_id="KKJ-2024-1234",
        role="member",
        status="active",
        pin=hash_pin(MEMBER_PIN),
        tapro_balance=1_000_000,
        simwa_balance=200_000,
        simpok_balance=100_000,
        simade_balance=0,
        created_at="2024-03-01T08:00:00+00:00",
    )


@pytest.fixture
def admin(db):
    return db.add(
        "profiles",
        email="admin@kkj.id",
        full_name="Admin KKJ",
        phone="081111111111",
        role="admin",
        status="active",
    )


@pytest.fixture
def member_client(client, member):
    login_as(client, member)
    return client


@pytest.fixture
def admin_client(client, admin):
    login_as(client, admin)
    return client
