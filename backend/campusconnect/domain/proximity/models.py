"""Domain models used by the proximity service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from campusconnect.domain.proximity.geo import is_valid_coordinate

PROXIMITY_EVENT = "proximity:nearby-suggestion"


def normalise_tags(values: Optional[Iterable[object]]) -> List[str]:
	"""Lower-case and strip interest tags, dropping blanks and duplicates."""
	if not values:
		return []
	normed: List[str] = []
	for value in values:
		if value is None:
			continue
		norm = str(value).strip().lower()
		if norm:
			normed.append(norm)
	return list(dict.fromkeys(normed))


def normalise_major(value: Optional[str]) -> str:
	return (value or "").strip().lower()


def _parse_interests(raw: object) -> List[str]:
	if isinstance(raw, str):
		try:
			raw = json.loads(raw)
		except ValueError:
			return [raw] if raw else []
	if isinstance(raw, (list, tuple)):
		return [str(item) for item in raw if item is not None]
	return []


def _as_utc(value: object) -> Optional[datetime]:
	if value is None:
		return None
	if isinstance(value, datetime):
		return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
	if isinstance(value, str):
		try:
			parsed = datetime.fromisoformat(value)
		except ValueError:
			return None
		return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
	return None


@dataclass(slots=True)
class Profile:
	"""Profile record as persisted in the ``profiles`` table."""

	user_id: str
	display_name: str = ""
	major: str = ""
	year: Optional[int] = None
	interests: List[str] = field(default_factory=list)
	bio: str = ""
	avatar_url: str = ""
	location_enabled: bool = False
	location_lat: Optional[float] = None
	location_lng: Optional[float] = None
	location_geohash: Optional[str] = None
	location_updated_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> "Profile":
		year = row.get("year")
		lat = row.get("location_lat")
		lng = row.get("location_lng")
		return cls(
			user_id=str(row["user_id"]),
			display_name=row.get("display_name") or "",
			major=row.get("major") or "",
			year=int(year) if year is not None else None,
			interests=_parse_interests(row.get("interests")),
			bio=row.get("bio") or "",
			avatar_url=row.get("avatar_url") or "",
			location_enabled=row.get("location_enabled") is True,
			location_lat=float(lat) if lat is not None else None,
			location_lng=float(lng) if lng is not None else None,
			location_geohash=row.get("location_geohash"),
			location_updated_at=_as_utc(row.get("location_updated_at")),
		)

	@property
	def coordinate(self) -> Optional[Tuple[float, float]]:
		if is_valid_coordinate(self.location_lat, self.location_lng):
			return self.location_lat, self.location_lng  # type: ignore[return-value]
		return None

	@property
	def normalised_interests(self) -> List[str]:
		return normalise_tags(self.interests)


@dataclass(slots=True)
class GeofenceSettings:
	enabled: bool
	center_lat: float
	center_lng: float
	radius_meters: float


class UpdateState(str, Enum):
	"""Terminal states of a single location-update event."""

	DISPATCHED = "dispatched"
	SKIPPED = "skipped"
	REJECTED_INVALID = "rejected_invalid"
	REJECTED_GEOFENCE = "rejected_geofence"


@dataclass(slots=True)
class ProximitySuggestion:
	"""Ephemeral pairing produced while handling one location update."""

	source_id: str
	target_id: str
	distance_m: float
	shared_interests: List[str]
	generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	def to_payload(self) -> dict[str, object]:
		return {
			"participantIdentities": [self.source_id, self.target_id],
			"distanceMeters": self.distance_m,
			"sharedInterests": list(self.shared_interests),
			"timestamp": self.generated_at.isoformat(),
		}


@dataclass(slots=True)
class LocationUpdateResult:
	state: UpdateState
	profile: Profile
	suggestions: List[ProximitySuggestion] = field(default_factory=list)
