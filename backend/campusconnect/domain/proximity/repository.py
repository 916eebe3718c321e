"""Postgres access for profiles, administrator settings and matches."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from campusconnect.domain.proximity.models import Profile
from campusconnect.infra.postgres import get_pool

SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
	user_id TEXT PRIMARY KEY,
	display_name TEXT NOT NULL DEFAULT '',
	major TEXT NOT NULL DEFAULT '',
	year INTEGER,
	interests TEXT[] NOT NULL DEFAULT '{}',
	bio TEXT NOT NULL DEFAULT '',
	avatar_url TEXT NOT NULL DEFAULT '',
	location_enabled BOOLEAN NOT NULL DEFAULT FALSE,
	location_lat DOUBLE PRECISION,
	location_lng DOUBLE PRECISION,
	location_geohash TEXT,
	location_updated_at TIMESTAMPTZ,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS profiles_bucket_idx
	ON profiles (location_geohash, location_enabled);
CREATE TABLE IF NOT EXISTS admin_settings (
	key TEXT PRIMARY KEY,
	value JSONB NOT NULL DEFAULT '{}'::jsonb,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	updated_by TEXT
);
CREATE TABLE IF NOT EXISTS matches (
	id TEXT PRIMARY KEY,
	users TEXT[] NOT NULL,
	compatibility INTEGER,
	matched_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_PROFILE_COLUMNS = """
	user_id, display_name, major, year, interests, bio, avatar_url, location_enabled,
	location_lat, location_lng, location_geohash, location_updated_at
"""


async def ensure_schema() -> None:
	pool = await get_pool()
	async with pool.acquire() as conn:
		await conn.execute(SCHEMA)


async def get_profile(user_id: str) -> Optional[Profile]:
	pool = await get_pool()
	row = await pool.fetchrow(
		f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE user_id = $1",
		user_id,
	)
	return Profile.from_row(row) if row else None


async def save_location(
	user_id: str,
	*,
	lat: float,
	lng: float,
	geohash: str,
	updated_at: datetime,
) -> Profile:
	"""Write coordinate, bucket key and timestamp in one statement.

	Creates a bare profile row when none exists yet so the location is never lost.
	"""
	pool = await get_pool()
	row = await pool.fetchrow(
		f"""
		INSERT INTO profiles (user_id, location_lat, location_lng, location_geohash, location_updated_at, updated_at)
		VALUES ($1, $2, $3, $4, $5, $5)
		ON CONFLICT (user_id) DO UPDATE SET
			location_lat = EXCLUDED.location_lat,
			location_lng = EXCLUDED.location_lng,
			location_geohash = EXCLUDED.location_geohash,
			location_updated_at = EXCLUDED.location_updated_at,
			updated_at = EXCLUDED.updated_at
		RETURNING {_PROFILE_COLUMNS}
		""",
		user_id,
		lat,
		lng,
		geohash,
		updated_at,
	)
	return Profile.from_row(row)


async def find_in_bucket(geohash: str) -> List[Profile]:
	"""Return opted-in profiles whose stored bucket key equals ``geohash``."""
	pool = await get_pool()
	rows = await pool.fetch(
		f"""
		SELECT {_PROFILE_COLUMNS}
		FROM profiles
		WHERE location_geohash = $1 AND location_enabled = TRUE
		""",
		geohash,
	)
	return [Profile.from_row(row) for row in rows]


async def list_profiles(*, exclude_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[Profile]:
	pool = await get_pool()
	rows = await pool.fetch(
		f"""
		SELECT {_PROFILE_COLUMNS}
		FROM profiles
		WHERE ($1::text IS NULL OR user_id <> $1)
		ORDER BY user_id
		LIMIT $2 OFFSET $3
		""",
		exclude_id,
		limit,
		offset,
	)
	return [Profile.from_row(row) for row in rows]


async def count_profiles(*, exclude_id: Optional[str] = None) -> int:
	pool = await get_pool()
	value = await pool.fetchval(
		"SELECT COUNT(*) FROM profiles WHERE ($1::text IS NULL OR user_id <> $1)",
		exclude_id,
	)
	return int(value or 0)


async def update_profile(user_id: str, fields: Dict[str, Any], *, updated_at: datetime) -> Profile:
	"""Merge editable profile fields. Location columns are never touched here."""
	columns = list(fields)
	assignments = ", ".join(f"{column} = EXCLUDED.{column}" for column in columns)
	placeholders = ", ".join(f"${idx + 3}" for idx in range(len(columns)))
	insert_columns = ", ".join(["user_id", "updated_at", *columns])
	set_clause = f"updated_at = EXCLUDED.updated_at{', ' + assignments if assignments else ''}"
	pool = await get_pool()
	row = await pool.fetchrow(
		f"""
		INSERT INTO profiles ({insert_columns})
		VALUES ($1, $2{', ' + placeholders if placeholders else ''})
		ON CONFLICT (user_id) DO UPDATE SET {set_clause}
		RETURNING {_PROFILE_COLUMNS}
		""",
		user_id,
		updated_at,
		*[fields[column] for column in columns],
	)
	return Profile.from_row(row)


async def get_admin_document(key: str) -> Optional[Dict[str, Any]]:
	pool = await get_pool()
	row = await pool.fetchrow("SELECT value FROM admin_settings WHERE key = $1", key)
	if not row:
		return None
	value = row["value"]
	if isinstance(value, str):
		value = json.loads(value)
	return dict(value or {})


async def merge_admin_document(key: str, patch: Dict[str, Any], *, updated_by: str, updated_at: datetime) -> Dict[str, Any]:
	pool = await get_pool()
	row = await pool.fetchrow(
		"""
		INSERT INTO admin_settings (key, value, updated_at, updated_by)
		VALUES ($1, $2::jsonb, $3, $4)
		ON CONFLICT (key) DO UPDATE SET
			value = admin_settings.value || EXCLUDED.value,
			updated_at = EXCLUDED.updated_at,
			updated_by = EXCLUDED.updated_by
		RETURNING value
		""",
		key,
		json.dumps(patch),
		updated_at,
		updated_by,
	)
	value = row["value"] if row else patch
	if isinstance(value, str):
		value = json.loads(value)
	return dict(value or {})


async def upsert_match(match_id: str, users: Sequence[str], *, compatibility: Optional[int], now: datetime) -> None:
	pool = await get_pool()
	await pool.execute(
		"""
		INSERT INTO matches (id, users, compatibility, matched_at, updated_at)
		VALUES ($1, $2::text[], $3, $4, $4)
		ON CONFLICT (id) DO UPDATE SET
			compatibility = EXCLUDED.compatibility,
			updated_at = EXCLUDED.updated_at
		""",
		match_id,
		list(users),
		compatibility,
		now,
	)


async def list_matches(user_id: str) -> List[Dict[str, Any]]:
	pool = await get_pool()
	rows = await pool.fetch(
		"""
		SELECT id, users, compatibility, matched_at, updated_at
		FROM matches
		WHERE $1 = ANY(users)
		ORDER BY matched_at DESC
		""",
		user_id,
	)
	return [
		{
			"id": row["id"],
			"users": list(row["users"] or []),
			"compatibility": row["compatibility"],
			"matched_at": row["matched_at"],
			"updated_at": row["updated_at"],
		}
		for row in rows
	]
