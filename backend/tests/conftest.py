"""
Shared fixtures: an in-memory stand-in for the Supabase client.

The double implements the PostgREST query chain used by the repositories
and the two SQL functions from sql/schema.sql, ranking with the same
vector literal the API sends to Postgres.
"""

import math
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "")

import pytest
from postgrest.exceptions import APIError
from jose import jwt

from rag_textbook.config import get_settings
from rag_textbook.features.knowledge.embedding import cosine_distance, decode_vector, encode_vector
from rag_textbook.features.knowledge.service import KnowledgeService
from rag_textbook.features.textbooks.chunks import ChunkAccessor
from rag_textbook.features.textbooks.repository import TextbookRepository
from rag_textbook.features.textbooks.service import TextbookService

DIMENSIONS = 3
BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable subset of postgrest's SyncRequestBuilder."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table_name = table
        self.columns = "*"
        self.count = None
        self.filters = []
        self.orders = []
        self.slice = None

    def select(self, *columns, count=None):
        self.columns = ",".join(columns) if columns else "*"
        self.count = count
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, size):
        self.slice = (0, size)
        return self

    def range(self, start, end):
        self.slice = (start, end - start + 1)
        return self

    def execute(self):
        self.client.check_failure(f"table:{self.table_name}")
        rows = [r for r in self.client.tables[self.table_name]
                if all(r.get(c) == v for c, v in self.filters)]
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda r: r[column], reverse=desc)
        total = len(rows)
        if self.slice is not None:
            start, size = self.slice
            rows = rows[start:start + size]
        if self.columns != "*":
            keep = [c.strip() for c in self.columns.split(",")]
            rows = [{c: r[c] for c in keep} for r in rows]
        return FakeResponse([dict(r) for r in rows], total if self.count else None)


class FakeRpc:
    def __init__(self, client: "FakeSupabase", name: str, params: dict):
        self.client = client
        self.name = name
        self.params = params

    def execute(self):
        self.client.rpc_calls.append((self.name, self.params))
        self.client.check_failure(f"rpc:{self.name}")
        handler = getattr(self.client, f"_rpc_{self.name}")
        return FakeResponse(handler(**self.params))


class FakeSupabase:
    def __init__(self):
        self.tables = {"textbooks": [], "chunks": []}
        self.failures = set()
        self.rpc_calls = []

    # ── client surface ───────────────────────────────────
    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    # ── test helpers ─────────────────────────────────────
    def fail_on(self, target: str):
        """Make every call to ``table:<name>`` or ``rpc:<name>`` raise APIError."""
        self.failures.add(target)

    def check_failure(self, target: str):
        if target in self.failures:
            raise APIError({"message": f"simulated failure on {target}", "code": "XX000", "hint": None, "details": None})

    def add_textbook(self, id, user_id, title="Textbook", processed=False, uploaded_at=None):
        uploaded_at = uploaded_at or BASE_TIME + timedelta(minutes=id)
        row = {
            "id": id,
            "user_id": user_id,
            "title": title,
            "s3_key": f"textbooks/{user_id}/{id}.pdf",
            "uploaded_at": uploaded_at.isoformat(),
            "processed": processed,
        }
        self.tables["textbooks"].append(row)
        return row

    def add_chunk(self, id, textbook_id, chunk_index, embedding, content=None, page_number=1):
        row = {
            "id": id,
            "textbook_id": textbook_id,
            "content": content or f"chunk {chunk_index} of textbook {textbook_id}",
            "page_number": page_number,
            "chunk_index": chunk_index,
            "created_at": BASE_TIME.isoformat(),
            "embedding": None if embedding is None else encode_vector(embedding),
        }
        self.tables["chunks"].append(row)
        return row

    # ── SQL functions ────────────────────────────────────
    def _rpc_search_textbook_chunks(self, query_embedding, match_textbook_id, match_count):
        query = decode_vector(query_embedding)
        scored = []
        for row in self.tables["chunks"]:
            if row["textbook_id"] != match_textbook_id or row["embedding"] is None:
                continue
            distance = cosine_distance(query, decode_vector(row["embedding"]))
            scored.append((distance, row))
        # Postgres sorts NaN after every number
        scored.sort(key=lambda p: (math.isnan(p[0]), p[0], p[1]["chunk_index"]))
        out = []
        for distance, row in scored[:max(match_count, 0)]:
            hit = {k: v for k, v in row.items() if k != "embedding"}
            hit["distance"] = distance
            out.append(hit)
        return out

    def _rpc_delete_textbook(self, p_textbook_id, p_user_id):
        owned = [t for t in self.tables["textbooks"]
                 if t["id"] == p_textbook_id and t["user_id"] == p_user_id]
        if not owned:
            return False
        self.tables["chunks"] = [c for c in self.tables["chunks"] if c["textbook_id"] != p_textbook_id]
        self.tables["textbooks"] = [t for t in self.tables["textbooks"] if t["id"] != p_textbook_id]
        return True


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def library(fake_db):
    """Textbook 5 owned by user 9 with three embedded chunks; textbook 6 owned by user 3."""
    fake_db.add_textbook(5, user_id=9, title="Linear Algebra")
    fake_db.add_chunk(50, 5, chunk_index=0, embedding=[1.0, 0.0, 0.0])
    fake_db.add_chunk(51, 5, chunk_index=1, embedding=[0.0, 1.0, 0.0])
    fake_db.add_chunk(52, 5, chunk_index=2, embedding=[0.6, 0.8, 0.0])
    fake_db.add_textbook(6, user_id=3, title="Organic Chemistry", processed=True)
    fake_db.add_chunk(60, 6, chunk_index=0, embedding=[0.0, 1.0, 0.0])
    return fake_db


@pytest.fixture
def knowledge(fake_db):
    return KnowledgeService(fake_db, dimensions=DIMENSIONS)


@pytest.fixture
def repository(fake_db):
    return TextbookRepository(fake_db)


@pytest.fixture
def chunks(fake_db):
    return ChunkAccessor(fake_db)


@pytest.fixture
def service(repository, chunks, knowledge):
    return TextbookService(repository=repository, chunks=chunks, knowledge=knowledge)


@pytest.fixture
def auth():
    """Build an Authorization header the way the auth service signs tokens."""
    def _header(user_id, expires_in=timedelta(hours=1)) -> dict:
        settings = get_settings()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(user_id), "iat": now, "exp": now + expires_in},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        return {"Authorization": f"Bearer {token}"}

    return _header
