"""
Shared fixtures: an in-memory stand-in for the Supabase client.

`FakeSupabase` implements the slice of the SDK the repositories use
(table().select/insert/update/delete/eq/order/limit/execute, rpc,
storage buckets, auth.admin.delete_user). Rows live in plain dicts, so
tests can seed and inspect the "database" directly.
"""
import os
import time
import uuid
from datetime import datetime, timedelta, timezone

# Settings are read at import time by the cafe modules.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from cafe.core.auth import Caller, get_request_client
from cafe.core.config import get_settings
from cafe.core.supabase_client import get_admin_client

# table name of an embed -> foreign key column on the parent row
EMBED_FOREIGN_KEYS = {
    "products": "product_id",
    "public_profiles": "user_id",
}

# views -> the table they read from
VIEW_SOURCES = {
    "public_profiles": "profiles",
}

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, data):
        self.data = data


def _split_columns(columns: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in columns:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.values = None
        self.filters: list[tuple[str, str]] = []
        self.order_by: tuple[str, bool] | None = None
        self.limit_n: int | None = None

    # ---- builder ----

    def select(self, columns: str = "*", count=None):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, values):
        self.action = "insert"
        self.values = values
        return self

    def update(self, values):
        self.action = "update"
        self.values = values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column: str, value):
        self.filters.append((column, str(value)))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.limit_n = n
        return self

    # ---- execution ----

    def _matches(self, row: dict) -> bool:
        return all(str(row.get(col)) == val for col, val in self.filters)

    def _project(self, row: dict) -> dict:
        if self.columns.strip() == "*":
            return dict(row)

        out: dict = {}
        for part in _split_columns(self.columns):
            if "(" in part:
                name, inner = part.split("(", 1)
                name = name.strip()
                fields = [f.strip() for f in inner.rstrip(")").split(",")]
                fk_value = row.get(EMBED_FOREIGN_KEYS[name])
                related = next(
                    (
                        r
                        for r in self.db.tables.get(VIEW_SOURCES.get(name, name), [])
                        if r["id"] == fk_value
                    ),
                    None,
                )
                out[name] = (
                    {f: related.get(f) for f in fields} if related is not None else None
                )
            else:
                out[part] = row.get(part)
        return out

    def execute(self):
        self.db.calls.append(
            {"table": self.table, "action": self.action, "filters": list(self.filters)}
        )
        self.db.raise_if_failing(self.table)
        self.db.raise_if_failing(f"{self.table}:{self.action}")

        rows = self.db.tables.setdefault(self.table, [])
        matched = [r for r in rows if self._matches(r)]

        if self.action == "select":
            if self.order_by:
                col, desc = self.order_by
                matched = sorted(matched, key=lambda r: str(r.get(col)), reverse=desc)
            if self.limit_n is not None:
                matched = matched[: self.limit_n]
            return FakeResponse([self._project(r) for r in matched])

        if self.action == "insert":
            values = self.values if isinstance(self.values, list) else [self.values]
            created = [self.db.seed(self.table, **v) for v in values]
            return FakeResponse([dict(r) for r in created])

        if self.action == "update":
            for row in matched:
                row.update(self.values)
            return FakeResponse([dict(r) for r in matched])

        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse([dict(r) for r in matched])

        raise AssertionError(f"unsupported action {self.action}")


class FakeRpc:
    def __init__(self, db: "FakeSupabase", fn: str, params: dict):
        self.db = db
        self.fn = fn
        self.params = params

    def execute(self):
        self.db.calls.append({"rpc": self.fn, "params": dict(self.params)})
        self.db.raise_if_failing(f"rpc:{self.fn}")
        if self.fn != "add_cart_item":
            raise AssertionError(f"unknown rpc {self.fn}")

        user_id = self.params["p_user_id"]
        product_id = self.params["p_product_id"]
        quantity = self.params["p_quantity"]

        for row in self.db.tables.setdefault("cart_items", []):
            if row["user_id"] == user_id and row["product_id"] == product_id:
                row["quantity"] += quantity
                return FakeResponse(dict(row))

        row = self.db.seed(
            "cart_items", user_id=user_id, product_id=product_id, quantity=quantity
        )
        return FakeResponse(dict(row))


class FakeBucket:
    def __init__(self, db: "FakeSupabase", bucket: str):
        self.db = db
        self.bucket = bucket

    def upload(self, path, file, file_options=None):
        self.db.raise_if_failing(f"storage:{self.bucket}")
        self.db.objects[(self.bucket, path)] = file
        return {"path": path}

    def get_public_url(self, path):
        return f"{self.db.url}/storage/v1/object/public/{self.bucket}/{path}"

    def remove(self, paths):
        self.db.raise_if_failing(f"storage:{self.bucket}")
        for path in paths:
            self.db.objects.pop((self.bucket, path), None)
        return []


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.db, bucket)


class FakeAuthAdmin:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.deleted: list[str] = []

    def delete_user(self, user_id: str):
        self.db.raise_if_failing("auth")
        self.deleted.append(user_id)


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.admin = FakeAuthAdmin(db)


class FakeSupabase:
    def __init__(self, url: str = "http://localhost:54321"):
        self.url = url
        self.tables: dict[str, list[dict]] = {}
        self.objects: dict[tuple[str, str], bytes] = {}
        self.calls: list[dict] = []
        self.failures: dict[str, Exception] = {}
        self.storage = FakeStorage(self)
        self.auth = FakeAuth(self)
        self._clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    from_ = table

    def rpc(self, fn: str, params: dict) -> FakeRpc:
        return FakeRpc(self, fn, params)

    # ---- test helpers ----

    def fail(self, target: str, exc: Exception) -> None:
        """
        Make every call on `target` raise.

        Targets: a table, "<table>:<action>" (select/insert/update/delete),
        "rpc:<fn>", "storage:<bucket>" or "auth".
        """
        self.failures[target] = exc

    def raise_if_failing(self, target: str) -> None:
        if target in self.failures:
            raise self.failures[target]

    def _next_timestamp(self) -> str:
        self._clock += 1
        return (BASE_TIME + timedelta(seconds=self._clock)).isoformat()

    def seed(self, table: str, **values) -> dict:
        row = {"id": str(uuid.uuid4()), "created_at": self._next_timestamp()}
        row.update({k: str(v) if isinstance(v, uuid.UUID) else v for k, v in values.items()})
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def caller() -> Caller:
    return Caller(user_id=uuid.uuid4(), email="ana@example.com", access_token="token-a")


@pytest.fixture
def other_caller() -> Caller:
    return Caller(user_id=uuid.uuid4(), email="bo@example.com", access_token="token-b")


@pytest.fixture
def seed_product(fake_supabase):
    def _seed(name: str = "Flat white", price: float = 3.5, **extra) -> dict:
        return fake_supabase.seed(
            "products",
            name=name,
            description=extra.pop("description", f"{name} description"),
            price=price,
            image_url=extra.pop("image_url", None),
            **extra,
        )

    return _seed


def make_token(user_id: uuid.UUID, email: str = "ana@example.com", expires_in: int = 3600) -> str:
    settings = get_settings()
    return jwt.encode(
        {"sub": str(user_id), "email": email, "exp": int(time.time()) + expires_in},
        settings.SUPABASE_JWT_SECRET,
        algorithm=settings.SUPABASE_JWT_ALG,
    )


@pytest.fixture
def auth_headers():
    def _headers(user_id: uuid.UUID) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def api_client(fake_supabase):
    from cafe.main import app

    app.dependency_overrides[get_request_client] = lambda: fake_supabase
    app.dependency_overrides[get_admin_client] = lambda: fake_supabase
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
