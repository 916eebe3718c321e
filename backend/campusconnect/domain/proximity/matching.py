"""Scored recommendations and confirmed matches."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from campusconnect.domain.proximity import repository, scoring
from campusconnect.domain.proximity.exceptions import MatchInputError
from campusconnect.domain.proximity.schemas import MatchRecord, PublicProfile, Recommendation
from campusconnect.obs import metrics as obs_metrics

CANDIDATE_POOL = 50
RECOMMENDATION_LIMIT = 10


def build_match_id(a: str, b: str) -> str:
	return "_".join(sorted((a, b)))


async def recommendations(user_id: str, *, radius_km: Optional[float] = None) -> List[Recommendation]:
	me = await repository.get_profile(user_id)
	if me is None:
		raise MatchInputError("profile_missing", "User profile missing")
	candidates = await repository.list_profiles(exclude_id=user_id, limit=CANDIDATE_POOL)
	scored: List[Recommendation] = []
	for candidate in candidates:
		result = scoring.score(me, candidate, radius_km)
		if radius_km and result.distance_km is not None and result.distance_km > radius_km:
			continue
		scored.append(
			Recommendation(
				user_id=candidate.user_id,
				profile=PublicProfile.from_profile(candidate),
				compatibility=result.score,
				distance_km=result.distance_km,
			)
		)
	scored.sort(key=lambda item: (-item.compatibility, item.user_id))
	obs_metrics.inc_match_recommendations()
	return scored[:RECOMMENDATION_LIMIT]


async def confirm_match(user_id: str, other_id: str, *, compatibility: Optional[int] = None) -> str:
	other_id = (other_id or "").strip()
	if not other_id:
		raise MatchInputError("user_id_required", "userId is required")
	if other_id == user_id:
		raise MatchInputError("self_match", "Cannot match with yourself")
	match_id = build_match_id(user_id, other_id)
	await repository.upsert_match(
		match_id,
		sorted((user_id, other_id)),
		compatibility=compatibility,
		now=datetime.now(timezone.utc),
	)
	return match_id


async def list_matches(user_id: str) -> List[MatchRecord]:
	rows = await repository.list_matches(user_id)
	return [MatchRecord(**row) for row in rows]
