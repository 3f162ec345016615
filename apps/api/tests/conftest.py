from typing import Any, Dict, List
from datetime import datetime, timedelta, timezone
import os
import random

import pytest
from fastapi.testclient import TestClient

from swipesound_catalog.deezer_client import CatalogError, CatalogTrack
from swipesound_core.types import Decision, DecisionRecord, DisplayMetadata, Identity

BASE_TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


class _Resp:
    def __init__(self, data):
        self.data = data


class _FakeQuery:
    """Minimal PostgREST query-builder chain over an in-memory table."""

    def __init__(self, db: "FakeSupabaseClient", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: List[Dict[str, Any]] = []
        self._filters: List[tuple] = []
        self._orders: List[tuple] = []
        self._limit: int | None = None
        self._on_conflict = ""

    # Insert / upsert / delete chains
    def insert(self, rows, returning: str = "representation"):
        self._op = "insert"
        self._payload = rows if isinstance(rows, list) else [rows]
        return self

    def upsert(self, rows, on_conflict: str = "", **_):
        self._op = "upsert"
        self._payload = rows if isinstance(rows, list) else [rows]
        self._on_conflict = on_conflict
        return self

    def delete(self, **_):
        self._op = "delete"
        return self

    # Read chain
    def select(self, _cols: str = "*", **_):
        return self

    def eq(self, col, value):
        self._filters.append((col, value))
        return self

    def order(self, col, desc: bool = False, **_):
        self._orders.append((col, desc))
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self._filters)

    def execute(self):
        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "insert":
            out = []
            for r in self._payload:
                self._db.next_id += 1
                row = dict(r)
                row["id"] = self._db.next_id
                row.setdefault(
                    "created_at",
                    (BASE_TS + timedelta(seconds=self._db.next_id)).isoformat(),
                )
                rows.append(row)
                out.append(dict(row))
            return _Resp(out)
        if self._op == "upsert":
            keys = [k.strip() for k in self._on_conflict.split(",") if k.strip()]
            for r in self._payload:
                existing = next(
                    (x for x in rows if keys and all(x.get(k) == r.get(k) for k in keys)),
                    None,
                )
                if existing is not None:
                    existing.update(r)
                else:
                    rows.append(dict(r))
            return _Resp([dict(r) for r in self._payload])
        if self._op == "delete":
            gone = [r for r in rows if self._matches(r)]
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return _Resp(gone)

        out = [dict(r) for r in rows if self._matches(r)]
        for col, desc in reversed(self._orders):
            out.sort(key=lambda r: r.get(col), reverse=desc)
        if self._limit is not None:
            out = out[: self._limit]
        return _Resp(out)


class _FakeAuth:
    def __init__(self, users: Dict[str, str]):
        self._users = users

    def get_user(self, token: str):
        class _User:
            def __init__(self, uid):
                self.id = uid

        class _AuthResp:
            def __init__(self, user):
                self.user = user

        uid = self._users.get(token)
        if uid is None:
            raise RuntimeError("invalid token")
        return _AuthResp(_User(uid))


class FakeSupabaseClient:
    def __init__(self, users: Dict[str, str] | None = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.next_id = 0
        self.auth = _FakeAuth(users or {})

    def table(self, name: str):
        # Return a new chain object per call to keep state separate
        return _FakeQuery(self, name)


def track(track_id: int, title: str | None = None) -> CatalogTrack:
    return CatalogTrack(
        id=track_id,
        title=title or f"Song {track_id}",
        preview=f"https://cdn.example/preview/{track_id}.mp3",
        artist={"name": f"Artist {track_id}"},
        album={
            "cover_small": f"https://cdn.example/{track_id}/s.jpg",
            "cover_big": f"https://cdn.example/{track_id}/b.jpg",
        },
    )


class FakeCatalog:
    """
    Async catalog stub. ``charts`` maps genre id to track ids (or an
    exception to raise); ``related`` maps seed item id the same way.
    """

    def __init__(self, charts=None, related=None, delay: Dict[str, float] | None = None):
        self.charts: Dict[int, Any] = charts or {}
        self.related: Dict[int, Any] = related or {}
        self.delay = delay or {}
        self.calls: List[tuple] = []

    async def _resolve(self, key: str, entries):
        import asyncio

        if key in self.delay:
            await asyncio.sleep(self.delay[key])
        if isinstance(entries, Exception):
            raise entries
        if entries is None:
            raise CatalogError(f"no fixture for {key}")
        return [track(i) for i in entries]

    async def chart_tracks(self, genre_id: int, limit: int = 40):
        self.calls.append(("chart", genre_id, limit))
        return await self._resolve(f"chart:{genre_id}", self.charts.get(genre_id))

    async def related_tracks(self, track_id: int, limit: int = 20):
        self.calls.append(("related", track_id, limit))
        return await self._resolve(f"related:{track_id}", self.related.get(track_id))


class FakeHistory:
    """In-memory InteractionHistory over prebuilt newest-first records."""

    def __init__(self, records: List[DecisionRecord] | None = None):
        self.records = list(records or [])
        self.calls: List[tuple] = []

    async def recent(self, identity: Identity, limit: int, *, decision: Decision | None = None):
        self.calls.append((identity, limit, decision))
        rows = [r for r in self.records if decision is None or r.decision == decision]
        return rows[:limit]


def make_records(entries, *, start_id: int = 1000) -> List[DecisionRecord]:
    """
    Build newest-first records from ``(decision, genre_id)`` or
    ``(decision, genre_id, item_id)`` tuples, ids descending.
    """
    out = []
    n = len(entries)
    for idx, entry in enumerate(entries):
        decision, genre_id = entry[0], entry[1]
        item_id = entry[2] if len(entry) > 2 else start_id + idx
        rid = n - idx
        out.append(
            DecisionRecord(
                id=rid,
                item_id=item_id,
                decision=Decision.parse(decision),
                created_at=BASE_TS + timedelta(seconds=rid),
                genre_id=genre_id,
                session_token="sess-1",
                display=DisplayMetadata(title=f"Song {item_id}"),
            )
        )
    return out


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture()
def fake_supabase():
    return FakeSupabaseClient(users={"good-token": "acct-1"})


@pytest.fixture()
def fake_catalog():
    return FakeCatalog(
        charts={
            0: [900, 901],
            132: [1, 2, 3],
            116: [4, 5],
            152: [6],
            113: [7, 8],
            165: [9],
            85: [10],
            106: [11],
            466: [12],
        },
        related={},
    )


@pytest.fixture()
def test_client(fake_supabase, fake_catalog):
    os.environ.setdefault("SUPABASE_URL", "")
    os.environ.setdefault("SUPABASE_API_KEY", "")

    from app.main import app  # type: ignore
    from app.deps.deps import get_catalog  # type: ignore
    from app.deps.supabase_client import (  # type: ignore
        get_supabase_client,
        get_supabase_client_optional,
    )

    # Override dependencies to avoid real Supabase / Deezer calls
    app.dependency_overrides[get_supabase_client] = lambda: fake_supabase
    app.dependency_overrides[get_supabase_client_optional] = lambda: fake_supabase
    app.dependency_overrides[get_catalog] = lambda: fake_catalog

    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def storeless_client(fake_catalog):
    """App with no Supabase credentials configured."""
    from app.main import app  # type: ignore
    from app.deps.deps import SupabaseCreds, get_catalog, get_supabase_creds  # type: ignore

    app.dependency_overrides[get_supabase_creds] = lambda: SupabaseCreds(url="", api_key="")
    app.dependency_overrides[get_catalog] = lambda: fake_catalog

    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
