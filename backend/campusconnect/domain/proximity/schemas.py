"""Pydantic schemas for profile, location, match and geofence endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from campusconnect.domain.proximity.models import Profile

MAX_INTERESTS = 20


class LocationUpdatePayload(BaseModel):
	"""Raw coordinate pair; numeric strings are accepted and validated downstream."""

	lat: Any = None
	lng: Any = None


class LocationRecord(BaseModel):
	location_lat: float
	location_lng: float
	location_geohash: str
	location_updated_at: datetime


class LocationUpdateResponse(BaseModel):
	success: bool = True
	location: LocationRecord


class PublicProfile(BaseModel):
	"""Fields safe to show to any authenticated student."""

	user_id: str
	display_name: str = ""
	major: str = ""
	year: Optional[int] = None
	interests: List[str] = Field(default_factory=list)
	bio: str = ""
	avatar_url: str = ""

	@classmethod
	def from_profile(cls, profile: Profile) -> "PublicProfile":
		return cls(
			user_id=profile.user_id,
			display_name=profile.display_name,
			major=profile.major,
			year=profile.year,
			interests=list(profile.interests),
			bio=profile.bio,
			avatar_url=profile.avatar_url,
		)


class OwnProfile(PublicProfile):
	location_enabled: bool = False
	location_lat: Optional[float] = None
	location_lng: Optional[float] = None
	location_updated_at: Optional[datetime] = None

	@classmethod
	def from_profile(cls, profile: Profile) -> "OwnProfile":
		base = PublicProfile.from_profile(profile).model_dump()
		return cls(
			**base,
			location_enabled=profile.location_enabled,
			location_lat=profile.location_lat,
			location_lng=profile.location_lng,
			location_updated_at=profile.location_updated_at,
		)


class ProfileUpdate(BaseModel):
	"""Owner-editable profile fields; omitted fields are left unchanged."""

	display_name: Optional[str] = Field(default=None, max_length=120)
	major: Optional[str] = Field(default=None, max_length=120)
	year: Optional[int] = Field(default=None, ge=0, le=10)
	interests: Optional[List[str]] = None
	bio: Optional[str] = Field(default=None, max_length=2000)
	avatar_url: Optional[str] = Field(default=None, max_length=2048)
	location_enabled: Optional[bool] = None

	@field_validator("interests")
	def _trim_interests(cls, value: Optional[List[str]]) -> Optional[List[str]]:
		if value is None:
			return None
		cleaned = [item.strip() for item in value if item and item.strip()]
		return cleaned[:MAX_INTERESTS]


class DirectoryResponse(BaseModel):
	profiles: List[PublicProfile]
	total: int
	returned: int
	limit: int
	offset: int


class Recommendation(BaseModel):
	user_id: str
	profile: PublicProfile
	compatibility: int
	distance_km: Optional[float] = None


class RecommendationsResponse(BaseModel):
	recommendations: List[Recommendation]


class ConfirmMatchRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	user_id: str = Field(..., alias="userId", min_length=1)
	compatibility: Optional[int] = Field(default=None, ge=0, le=100)


class ConfirmMatchResponse(BaseModel):
	success: bool = True
	match_id: str


class MatchRecord(BaseModel):
	id: str
	users: List[str]
	compatibility: Optional[int] = None
	matched_at: datetime
	updated_at: datetime


class MatchListResponse(BaseModel):
	matches: List[MatchRecord]


class GeofenceSettingsOut(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	enabled: bool
	center_lat: float = Field(alias="centerLat")
	center_lng: float = Field(alias="centerLng")
	radius_meters: float = Field(alias="radiusMeters")


class GeofenceSettingsPatch(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="forbid")

	enabled: Optional[bool] = None
	center_lat: Optional[float] = Field(default=None, alias="centerLat", ge=-90.0, le=90.0)
	center_lng: Optional[float] = Field(default=None, alias="centerLng", ge=-180.0, le=180.0)
	radius_meters: Optional[float] = Field(default=None, alias="radiusMeters", ge=10.0)

	def to_document(self) -> dict[str, object]:
		return self.model_dump(by_alias=True, exclude_none=True)
