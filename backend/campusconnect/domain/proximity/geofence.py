"""Administrator-configured circular campus boundary.

Settings resolve from the stored ``geofence`` document, then environment
variables, then hard-coded defaults. A missing document leaves enforcement
disabled unless the environment explicitly configures and enables it, and a
failed read is treated the same way: the geofence never blocks a location
write because its own configuration is unavailable.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from campusconnect.domain.proximity import repository
from campusconnect.domain.proximity.geo import haversine, is_valid_coordinate
from campusconnect.domain.proximity.models import GeofenceSettings
from campusconnect.obs import metrics as obs_metrics
from campusconnect.settings import is_true, settings

logger = logging.getLogger(__name__)

GEOFENCE_DOCUMENT = "geofence"

DEFAULT_CENTER_LAT = 51.505
DEFAULT_CENTER_LNG = 0.05
DEFAULT_RADIUS_M = 1000.0


def _first_number(*values: object) -> float:
	for value in values:
		if isinstance(value, bool) or value is None:
			continue
		try:
			return float(value)  # type: ignore[arg-type]
		except (TypeError, ValueError):
			continue
	raise ValueError("no numeric value")


def _env_fallback() -> GeofenceSettings:
	has_env = (
		settings.geofence_center_lat is not None
		and settings.geofence_center_lng is not None
		and settings.geofence_radius_m is not None
	)
	return GeofenceSettings(
		enabled=has_env and is_true(settings.geofence_enabled),
		center_lat=_first_number(settings.geofence_center_lat, DEFAULT_CENTER_LAT),
		center_lng=_first_number(settings.geofence_center_lng, DEFAULT_CENTER_LNG),
		radius_meters=_first_number(settings.geofence_radius_m, DEFAULT_RADIUS_M),
	)


def from_document(data: Mapping[str, Any]) -> GeofenceSettings:
	return GeofenceSettings(
		enabled=data.get("enabled") is True,
		center_lat=_first_number(data.get("centerLat"), settings.geofence_center_lat, DEFAULT_CENTER_LAT),
		center_lng=_first_number(data.get("centerLng"), settings.geofence_center_lng, DEFAULT_CENTER_LNG),
		radius_meters=_first_number(data.get("radiusMeters"), settings.geofence_radius_m, DEFAULT_RADIUS_M),
	)


async def load_geofence_settings() -> GeofenceSettings:
	try:
		data = await repository.get_admin_document(GEOFENCE_DOCUMENT)
	except Exception:
		logger.warning("geofence settings read failed; using fallback", exc_info=True)
		obs_metrics.inc_geofence_fallback("read_failed")
		return _env_fallback()
	if data is None:
		obs_metrics.inc_geofence_fallback("unset")
		return _env_fallback()
	return from_document(data)


def point_inside(lat: float, lng: float, geofence: GeofenceSettings) -> bool:
	"""Pure check against already-loaded settings."""
	if not geofence.enabled:
		return True
	if not is_valid_coordinate(lat, lng):
		return False
	distance = haversine(lat, lng, geofence.center_lat, geofence.center_lng, "m")
	return distance <= geofence.radius_meters


async def inside_geofence(lat: float, lng: float, geofence: Optional[GeofenceSettings] = None) -> bool:
	if geofence is None:
		geofence = await load_geofence_settings()
	return point_inside(lat, lng, geofence)


def to_public(geofence: GeofenceSettings) -> Dict[str, object]:
	return {
		"enabled": geofence.enabled,
		"centerLat": geofence.center_lat,
		"centerLng": geofence.center_lng,
		"radiusMeters": geofence.radius_meters,
	}


async def update_geofence_settings(patch: Mapping[str, Any], *, updated_by: str) -> GeofenceSettings:
	"""Merge a partial update over the stored document and return the effective settings."""
	clean = {key: value for key, value in patch.items() if value is not None}
	merged = await repository.merge_admin_document(
		GEOFENCE_DOCUMENT,
		clean,
		updated_by=updated_by,
		updated_at=datetime.now(timezone.utc),
	)
	logger.info("geofence settings updated", extra={"updated_by": updated_by, "fields": sorted(clean)})
	return from_document(merged)
