"""
Pytest configuration and an in-memory stand-in for the Supabase client.

The fake implements the slice of the PostgREST query builder the services use
(select/insert/update/delete, eq/in_/ov/filter/or_/order) plus storage
buckets and ``auth.get_user``, so the API can be exercised without a project.
"""
import copy
import json
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
from httpx import ASGITransport

from app.auth import Authority, get_authority
from app.config import get_db
from app.main import app


UUID_COLUMNS = {"id", "author", "course", "created_by", "instructor"}


USERS = {
    "admin": {
        "id": "0b7f6c1e-5a0e-4d43-9a55-2f7c1d9e0a01",
        "username": "admin",
        "full_name": "Ada Admin",
        "role": "admin",
    },
    "alice": {
        "id": "3c9d2e4f-1b6a-4c8e-8f20-7a5b6c4d0a02",
        "username": "alice",
        "full_name": "Alice A.",
        "role": "student",
    },
    "bob": {
        "id": "5e1a7b3c-9d2f-4e6a-b1c4-8d3e2f1a0a03",
        "username": "bob",
        "full_name": "Bob B.",
        "role": "student",
    },
    "carol": {
        "id": "7a4c9e2b-3f1d-4b5a-a6e8-1c2d3e4f0a04",
        "username": "carol",
        "full_name": "Carol C.",
        "role": "educator",
    },
}


def _is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _text(value) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def _split_top_level(expr: str):
    parts, depth, current, quoted, escaped = [], 0, [], False, False
    for ch in expr:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and quoted:
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            quoted = not quoted
        elif not quoted and ch in "({[":
            depth += 1
        elif not quoted and ch in ")}]":
            depth -= 1
        elif not quoted and depth == 0 and ch == ",":
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
        return re.sub(r"\\(.)", r"\1", value)
    return value


def _ilike(pattern: str, value) -> bool:
    regex = ".*".join(re.escape(piece) for piece in pattern.split("*"))
    text = "" if value is None else _text(value)
    return re.fullmatch(regex, text, re.IGNORECASE | re.DOTALL) is not None


def _json_contains(haystack, needle) -> bool:
    if isinstance(needle, dict):
        return isinstance(haystack, dict) and all(
            key in haystack and _json_contains(haystack[key], value)
            for key, value in needle.items()
        )
    if isinstance(needle, list):
        return isinstance(haystack, list) and all(
            any(_json_contains(item, wanted) for item in haystack) for wanted in needle
        )
    return _text(haystack) == _text(needle)


def _parse_condition(item: str):
    if item.startswith("or(") and item.endswith(")"):
        return _parse_or(item[3:-1])
    if item.startswith("and(") and item.endswith(")"):
        preds = [_parse_condition(part) for part in _split_top_level(item[4:-1])]
        return lambda row: all(pred(row) for pred in preds)

    column, op, raw = item.split(".", 2)
    value = _unquote(raw)
    if op == "eq":
        return lambda row: _text(row.get(column)) == value
    if op == "ilike":
        return lambda row: _ilike(value, row.get(column))
    if op == "cs":
        wanted = [v for v in value.strip("{}").split(",") if v]
        return lambda row: all(w in [_text(v) for v in row.get(column) or []] for w in wanted)
    raise ValueError(f"fake supabase does not support operator {op!r}")


def _parse_or(expr: str):
    preds = [_parse_condition(part) for part in _split_top_level(expr)]
    return lambda row: any(pred(row) for pred in preds)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.bad_uuid = None

    def _check_uuid(self, column, values):
        if column in UUID_COLUMNS:
            for value in values:
                if not _is_uuid(value):
                    self.bad_uuid = value

    def select(self, columns: str = "*"):
        self.columns = columns
        return self

    def insert(self, data):
        self.action, self.payload = "insert", data
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self._check_uuid(column, [value])
        self.filters.append(lambda row: _text(row.get(column)) == _text(value))
        return self

    def in_(self, column, values):
        self._check_uuid(column, values)
        wanted = {_text(v) for v in values}
        self.filters.append(lambda row: _text(row.get(column)) in wanted)
        return self

    def ov(self, column, values):
        wanted = set(values)
        self.filters.append(lambda row: bool(wanted & set(row.get(column) or [])))
        return self

    def filter(self, column, operator, criteria):
        if operator != "cs":
            raise ValueError(f"fake supabase does not support operator {operator!r}")
        wanted = json.loads(criteria)
        self.filters.append(lambda row: _json_contains(row.get(column), wanted))
        return self

    def or_(self, filters: str):
        self.filters.append(_parse_or(filters))
        return self

    def order(self, column, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def _matching(self):
        rows = self.db.tables.setdefault(self.table, {})
        return [row for row in rows.values() if all(f(row) for f in self.filters)]

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        keys = [c.strip() for c in self.columns.split(",")]
        return {k: copy.deepcopy(row[k]) for k in keys if k in row}

    def execute(self):
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"connection to {self.table} lost")
        if self.bad_uuid is not None:
            raise RuntimeError(
                f'invalid input syntax for type uuid: "{self.bad_uuid}" (22P02)'
            )
        self.db.calls.append((self.action, self.table))
        rows = self.db.tables.setdefault(self.table, {})

        if self.action == "insert":
            row = copy.deepcopy(self.payload)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            rows[str(row["id"])] = row
            return SimpleNamespace(data=[copy.deepcopy(row)])

        matched = self._matching()
        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))
        if self.action == "delete":
            for row in matched:
                rows.pop(str(row["id"]))
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: _text(r.get(column)), reverse=desc)
        return SimpleNamespace(data=[self._project(row) for row in matched])


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name

    def upload(self, path, file, file_options=None):
        self.db.objects[(self.name, path)] = file
        return SimpleNamespace(path=path)

    def remove(self, paths):
        for path in paths:
            self.db.objects.pop((self.name, path), None)
        return [SimpleNamespace(name=path) for path in paths]

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.db, bucket)


class FakeAuth:
    def __init__(self):
        self.tokens = {}

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise RuntimeError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[jwt]))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.objects = {}
        self.calls = []
        self.failing_tables = set()
        self.storage = FakeStorage(self)
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, row: dict) -> dict:
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        self.tables.setdefault(table, {})[str(row["id"])] = copy.deepcopy(row)
        return row

    def row(self, table: str, row_id: str) -> dict:
        return self.tables[table][str(row_id)]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def users():
    return {name: user["id"] for name, user in USERS.items()}


@pytest.fixture
def db():
    fake = FakeSupabase()
    for user in USERS.values():
        fake.seed("users", user)
    return fake


@pytest.fixture
def authority():
    """Build the Authority of one of the seeded users by name."""

    def _authority(name: str) -> Authority:
        return Authority.for_caller(USERS[name]["id"], USERS[name]["role"])

    return _authority


@pytest.fixture
def login(authority):
    """Make subsequent API requests run as the named user."""

    def _login(name: str) -> None:
        caller = authority(name)
        app.dependency_overrides[get_authority] = lambda: caller

    yield _login
    app.dependency_overrides.pop(get_authority, None)


@pytest.fixture
def api(db):
    app.dependency_overrides[get_db] = lambda: db
    client = httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()
