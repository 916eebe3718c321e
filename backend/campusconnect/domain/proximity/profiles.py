"""Profile reads and owner edits."""

from __future__ import annotations

from datetime import datetime, timezone

from campusconnect.domain.proximity import repository
from campusconnect.domain.proximity.exceptions import ProfileNotFound
from campusconnect.domain.proximity.schemas import (
	DirectoryResponse,
	OwnProfile,
	ProfileUpdate,
	PublicProfile,
)

DIRECTORY_MAX_LIMIT = 200


async def get_own_profile(user_id: str) -> OwnProfile:
	profile = await repository.get_profile(user_id)
	if profile is None:
		raise ProfileNotFound()
	return OwnProfile.from_profile(profile)


async def get_public_profile(user_id: str) -> PublicProfile:
	profile = await repository.get_profile(user_id)
	if profile is None:
		raise ProfileNotFound()
	return PublicProfile.from_profile(profile)


async def directory(viewer_id: str, *, limit: int = 50, offset: int = 0) -> DirectoryResponse:
	limit = max(1, min(limit, DIRECTORY_MAX_LIMIT))
	offset = max(0, offset)
	rows = await repository.list_profiles(exclude_id=viewer_id, limit=limit, offset=offset)
	total = await repository.count_profiles(exclude_id=viewer_id)
	items = [PublicProfile.from_profile(row) for row in rows]
	return DirectoryResponse(profiles=items, total=total, returned=len(items), limit=limit, offset=offset)


async def edit_profile(user_id: str, update: ProfileUpdate) -> OwnProfile:
	fields = update.model_dump(exclude_none=True)
	profile = await repository.update_profile(user_id, fields, updated_at=datetime.now(timezone.utc))
	return OwnProfile.from_profile(profile)
