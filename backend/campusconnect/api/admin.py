"""Administrator controls for the campus geofence."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from campusconnect.domain.proximity import geofence
from campusconnect.domain.proximity.schemas import GeofenceSettingsOut, GeofenceSettingsPatch
from campusconnect.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/admin", tags=["admin"])


def _out(settings) -> GeofenceSettingsOut:
	return GeofenceSettingsOut.model_validate(geofence.to_public(settings))


@router.get("/geofence-settings", response_model=GeofenceSettingsOut, response_model_by_alias=True)
async def get_geofence_settings(admin: AuthenticatedUser = Depends(get_admin_user)) -> GeofenceSettingsOut:
	return _out(await geofence.load_geofence_settings())


@router.patch("/geofence-settings", response_model=GeofenceSettingsOut, response_model_by_alias=True)
async def patch_geofence_settings(
	payload: GeofenceSettingsPatch,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> GeofenceSettingsOut:
	patch = payload.to_document()
	if not patch:
		raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="empty_patch")
	return _out(await geofence.update_geofence_settings(patch, updated_by=admin.id))
