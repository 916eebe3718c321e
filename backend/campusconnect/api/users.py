"""Profile and location endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from campusconnect.domain.proximity import profiles, service
from campusconnect.domain.proximity.schemas import (
    DirectoryResponse,
    LocationRecord,
    LocationUpdatePayload,
    LocationUpdateResponse,
    OwnProfile,
    ProfileUpdate,
    PublicProfile,
)
from campusconnect.infra.auth import AuthenticatedUser, get_current_user, require_owner
from campusconnect.infra.rate_limit import RateLimitExceeded

router = APIRouter()


@router.patch("/users/{user_id}/location", response_model=LocationUpdateResponse)
async def update_location(
    user_id: str,
    payload: LocationUpdatePayload,
    auth_user: AuthenticatedUser = Depends(require_owner()),
) -> LocationUpdateResponse:
    try:
        await service.enforce_rate_limit(user_id)
    except RateLimitExceeded as exc:
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        raise HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited", headers=headers) from None
    result = await service.update_location(user_id, payload.lat, payload.lng)
    profile = result.profile
    return LocationUpdateResponse(
        success=True,
        location=LocationRecord(
            location_lat=profile.location_lat,
            location_lng=profile.location_lng,
            location_geohash=profile.location_geohash,
            location_updated_at=profile.location_updated_at,
        ),
    )


@router.get("/users/me", response_model=OwnProfile)
async def get_me(auth_user: AuthenticatedUser = Depends(get_current_user)) -> OwnProfile:
    return await profiles.get_own_profile(auth_user.id)


@router.get("/users", response_model=DirectoryResponse)
async def list_users(
    limit: int = Query(default=50, ge=1, le=profiles.DIRECTORY_MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> DirectoryResponse:
    return await profiles.directory(auth_user.id, limit=limit, offset=offset)


@router.get("/users/{user_id}/profile", response_model=PublicProfile)
async def get_profile(
    user_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PublicProfile:
    return await profiles.get_public_profile(user_id)


@router.put("/users/{user_id}", response_model=OwnProfile)
async def edit_profile(
    user_id: str,
    payload: ProfileUpdate,
    auth_user: AuthenticatedUser = Depends(require_owner()),
) -> OwnProfile:
    return await profiles.edit_profile(user_id, payload)
