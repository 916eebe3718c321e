"""Domain-level exceptions for location updates and matching."""

from __future__ import annotations

from campusconnect.infra.rate_limit import RateLimitExceeded


class ProximityError(Exception):
	"""Base class for proximity feature errors."""

	reason: str = "unknown"
	message: str = "Proximity request failed"

	def __init__(self, reason: str | None = None, message: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason
		if message:
			self.message = message


class CoordinateInvalid(ProximityError):
	reason = "invalid_coordinates"
	message = "Provide valid lat/lng as numbers"


class OutsideGeofence(ProximityError):
	reason = "outside_geofence"
	message = "Location outside campus geofence"


class LocationPersistFailed(ProximityError):
	reason = "location_persist_failed"
	message = "Failed to update location"


class ProfileNotFound(ProximityError):
	reason = "profile_not_found"
	message = "Profile not found"


class MatchInputError(ProximityError):
	reason = "invalid_match"
	message = "Invalid match request"


__all__ = [
	"CoordinateInvalid",
	"LocationPersistFailed",
	"MatchInputError",
	"OutsideGeofence",
	"ProfileNotFound",
	"ProximityError",
	"RateLimitExceeded",
]
