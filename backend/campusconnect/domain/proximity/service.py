"""Location updates and the proximity suggestion pipeline.

Each update runs, in order: coordinate validation, geofence check,
persistence of coordinate + bucket key + timestamp, then (only for opted-in
submitters) a bounded neighbourhood search whose survivors are pushed to both
participants. Everything after persistence is best-effort: a failure there is
logged and never undoes or fails the write.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from campusconnect.domain.proximity import geohash, repository
from campusconnect.domain.proximity.dispatch import SendToIdentity, dispatcher
from campusconnect.domain.proximity.exceptions import (
	CoordinateInvalid,
	LocationPersistFailed,
	OutsideGeofence,
)
from campusconnect.domain.proximity.geo import haversine, parse_coordinate
from campusconnect.domain.proximity.geofence import load_geofence_settings, point_inside
from campusconnect.domain.proximity.models import (
	PROXIMITY_EVENT,
	GeofenceSettings,
	LocationUpdateResult,
	Profile,
	ProximitySuggestion,
	UpdateState,
	normalise_major,
)
from campusconnect.domain.proximity.scoring import shared_interests
from campusconnect.infra.rate_limit import RateLimitExceeded, hit
from campusconnect.obs import metrics as obs_metrics
from campusconnect.settings import settings

logger = logging.getLogger(__name__)

RECENCY_WINDOW = timedelta(minutes=5)
SUGGESTION_RADIUS_M = 100.0


async def enforce_rate_limit(user_id: str) -> None:
	limit = settings.location_update_rate_limit
	if settings.is_dev():
		limit *= 10
	decision = await hit("location", user_id, limit=limit)
	if not decision.allowed:
		raise RateLimitExceeded("location", retry_after=decision.reset_in)


def evaluate_candidate(
	origin: Profile,
	candidate: Profile,
	*,
	now: datetime,
	geofence: GeofenceSettings,
) -> Optional[ProximitySuggestion]:
	"""Apply every suggestion gate; return a suggestion only when all pass."""
	if candidate.user_id == origin.user_id:
		return None
	if not candidate.location_enabled:
		return None
	origin_coord = origin.coordinate
	coord = candidate.coordinate
	if origin_coord is None or coord is None or candidate.location_updated_at is None:
		return None
	if now - candidate.location_updated_at > RECENCY_WINDOW:
		return None
	if not point_inside(coord[0], coord[1], geofence):
		return None
	distance_m = haversine(origin_coord[0], origin_coord[1], coord[0], coord[1], "m")
	if distance_m >= SUGGESTION_RADIUS_M:
		return None
	major = normalise_major(origin.major)
	if not major or major != normalise_major(candidate.major):
		return None
	common = shared_interests(origin, candidate)
	if not common:
		return None
	return ProximitySuggestion(
		source_id=origin.user_id,
		target_id=candidate.user_id,
		distance_m=distance_m,
		shared_interests=common,
		generated_at=now,
	)


async def gather_candidates(origin: Profile) -> List[Profile]:
	"""Query the origin bucket and its neighbours concurrently, de-duplicated."""
	if not origin.location_geohash:
		return []
	keys = geohash.neighbourhood(origin.location_geohash)
	batches = await asyncio.gather(
		*(repository.find_in_bucket(key) for key in keys),
		return_exceptions=True,
	)
	# every query has settled by now; surface the first failure
	for batch in batches:
		if isinstance(batch, BaseException):
			raise batch
	seen: Dict[str, Profile] = {}
	for batch in batches:
		for candidate in batch:
			if candidate.user_id != origin.user_id:
				seen.setdefault(candidate.user_id, candidate)
	return list(seen.values())


async def dispatch_suggestions(suggestions: Iterable[ProximitySuggestion], send: SendToIdentity) -> None:
	for suggestion in suggestions:
		payload = suggestion.to_payload()
		results = await asyncio.gather(
			send(suggestion.source_id, PROXIMITY_EVENT, payload),
			send(suggestion.target_id, PROXIMITY_EVENT, payload),
			return_exceptions=True,
		)
		for result in results:
			if isinstance(result, Exception):
				logger.warning("proximity suggestion delivery failed", exc_info=result)


async def find_suggestions(origin: Profile, *, now: datetime, geofence: GeofenceSettings) -> List[ProximitySuggestion]:
	candidates = await gather_candidates(origin)
	obs_metrics.observe_candidates(len(candidates))
	suggestions: List[ProximitySuggestion] = []
	for candidate in candidates:
		suggestion = evaluate_candidate(origin, candidate, now=now, geofence=geofence)
		if suggestion is not None:
			suggestions.append(suggestion)
	return suggestions


async def update_location(
	user_id: str,
	lat: object,
	lng: object,
	*,
	send: Optional[SendToIdentity] = None,
	now: Optional[datetime] = None,
) -> LocationUpdateResult:
	coordinate = parse_coordinate(lat, lng)
	if coordinate is None:
		obs_metrics.inc_location_update(UpdateState.REJECTED_INVALID.value)
		raise CoordinateInvalid()
	lat_f, lng_f = coordinate

	geofence = await load_geofence_settings()
	if not point_inside(lat_f, lng_f, geofence):
		obs_metrics.inc_location_update(UpdateState.REJECTED_GEOFENCE.value)
		logger.info("location rejected outside geofence user=%s", user_id)
		raise OutsideGeofence()

	now = now or datetime.now(timezone.utc)
	try:
		profile = await repository.save_location(
			user_id,
			lat=lat_f,
			lng=lng_f,
			geohash=geohash.encode(lat_f, lng_f),
			updated_at=now,
		)
	except Exception as exc:
		logger.exception("location persist failed user=%s", user_id)
		raise LocationPersistFailed() from exc

	if not profile.location_enabled:
		obs_metrics.inc_location_update(UpdateState.SKIPPED.value)
		return LocationUpdateResult(state=UpdateState.SKIPPED, profile=profile)

	suggestions: List[ProximitySuggestion] = []
	try:
		suggestions = await find_suggestions(profile, now=now, geofence=geofence)
		if suggestions:
			await dispatch_suggestions(suggestions, send or dispatcher.send_to_identity)
			obs_metrics.inc_suggestions(len(suggestions))
	except Exception:
		obs_metrics.inc_search_failure()
		logger.exception("proximity search failed after location write user=%s", user_id)

	obs_metrics.inc_location_update(UpdateState.DISPATCHED.value)
	logger.info("location updated user=%s bucket=%s suggestions=%s", user_id, profile.location_geohash, len(suggestions))
	return LocationUpdateResult(state=UpdateState.DISPATCHED, profile=profile, suggestions=suggestions)
