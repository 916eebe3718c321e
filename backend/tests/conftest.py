import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from campusconnect.domain.proximity import repository
from campusconnect.domain.proximity.dispatch import registry
from campusconnect.domain.proximity.models import Profile
from campusconnect.infra import postgres
from campusconnect.main import app
from campusconnect.settings import settings


class MemoryStore:
	"""In-memory stand-in for the Postgres repository functions."""

	def __init__(self) -> None:
		self.profiles: Dict[str, Dict[str, Any]] = {}
		self.admin: Dict[str, Dict[str, Any]] = {}
		self.matches: Dict[str, Dict[str, Any]] = {}
		self.bucket_queries: List[str] = []
		self.fail_admin_read = False
		self.fail_bucket_read = False
		self.fail_save = False

	def add_profile(self, user_id: str, **fields: Any) -> Profile:
		row = {"user_id": user_id, **fields}
		self.profiles[user_id] = row
		return Profile.from_row(row)

	async def get_profile(self, user_id: str) -> Optional[Profile]:
		row = self.profiles.get(user_id)
		return Profile.from_row(row) if row else None

	async def save_location(self, user_id, *, lat, lng, geohash, updated_at) -> Profile:
		if self.fail_save:
			raise RuntimeError("store unavailable")
		row = self.profiles.setdefault(user_id, {"user_id": user_id})
		row.update(
			location_lat=lat,
			location_lng=lng,
			location_geohash=geohash,
			location_updated_at=updated_at,
		)
		return Profile.from_row(row)

	async def find_in_bucket(self, geohash: str) -> List[Profile]:
		self.bucket_queries.append(geohash)
		if self.fail_bucket_read:
			raise RuntimeError("bucket query failed")
		return [
			Profile.from_row(row)
			for row in self.profiles.values()
			if row.get("location_geohash") == geohash and row.get("location_enabled") is True
		]

	async def list_profiles(self, *, exclude_id=None, limit=50, offset=0) -> List[Profile]:
		rows = sorted(
			(row for user_id, row in self.profiles.items() if user_id != exclude_id),
			key=lambda row: row["user_id"],
		)
		return [Profile.from_row(row) for row in rows[offset : offset + limit]]

	async def count_profiles(self, *, exclude_id=None) -> int:
		return sum(1 for user_id in self.profiles if user_id != exclude_id)

	async def update_profile(self, user_id, fields, *, updated_at) -> Profile:
		row = self.profiles.setdefault(user_id, {"user_id": user_id})
		row.update(fields)
		return Profile.from_row(row)

	async def get_admin_document(self, key: str) -> Optional[Dict[str, Any]]:
		if self.fail_admin_read:
			raise RuntimeError("settings read failed")
		doc = self.admin.get(key)
		return dict(doc) if doc is not None else None

	async def merge_admin_document(self, key, patch, *, updated_by, updated_at) -> Dict[str, Any]:
		doc = self.admin.setdefault(key, {})
		doc.update(patch)
		return dict(doc)

	async def upsert_match(self, match_id, users, *, compatibility, now) -> None:
		existing = self.matches.get(match_id)
		if existing:
			existing.update(compatibility=compatibility, updated_at=now)
			return
		self.matches[match_id] = {
			"id": match_id,
			"users": list(users),
			"compatibility": compatibility,
			"matched_at": now,
			"updated_at": now,
		}

	async def list_matches(self, user_id: str) -> List[Dict[str, Any]]:
		return [dict(match) for match in self.matches.values() if user_id in match["users"]]


_REPOSITORY_FUNCTIONS = (
	"get_profile",
	"save_location",
	"find_in_bucket",
	"list_profiles",
	"count_profiles",
	"update_profile",
	"get_admin_document",
	"merge_admin_document",
	"upsert_match",
	"list_matches",
)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from campusconnect.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)
	monkeypatch.setattr(repository, "ensure_schema", _noop)


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
	"""Dev mode (header auth) with no geofence configured in the environment."""
	monkeypatch.setattr(settings, "environment", "dev")
	monkeypatch.setattr(settings, "geofence_enabled", None)
	monkeypatch.setattr(settings, "geofence_center_lat", None)
	monkeypatch.setattr(settings, "geofence_center_lng", None)
	monkeypatch.setattr(settings, "geofence_radius_m", None)
	monkeypatch.setattr(settings, "location_update_rate_limit", 60)
	yield


@pytest.fixture(autouse=True)
def clear_registry():
	registry.clear()
	yield
	registry.clear()


@pytest.fixture
def memory_store(monkeypatch):
	store = MemoryStore()
	for name in _REPOSITORY_FUNCTIONS:
		monkeypatch.setattr(repository, name, getattr(store, name))
	return store


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
