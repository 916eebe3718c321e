"""Recommendation and confirmed-match endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from campusconnect.domain.proximity import matching
from campusconnect.domain.proximity.schemas import (
    ConfirmMatchRequest,
    ConfirmMatchResponse,
    MatchListResponse,
    RecommendationsResponse,
)
from campusconnect.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/match")


@router.get("/recommendations", response_model=RecommendationsResponse)
async def recommendations(
    radius_km: Optional[float] = Query(default=None, gt=0),
    radius_km_camel: Optional[float] = Query(default=None, gt=0, alias="radiusKm"),
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> RecommendationsResponse:
    radius = radius_km if radius_km is not None else radius_km_camel
    items = await matching.recommendations(auth_user.id, radius_km=radius)
    return RecommendationsResponse(recommendations=items)


@router.post("/confirm", response_model=ConfirmMatchResponse)
async def confirm(
    payload: ConfirmMatchRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConfirmMatchResponse:
    match_id = await matching.confirm_match(auth_user.id, payload.user_id, compatibility=payload.compatibility)
    return ConfirmMatchResponse(success=True, match_id=match_id)


@router.get("/mine", response_model=MatchListResponse)
async def mine(auth_user: AuthenticatedUser = Depends(get_current_user)) -> MatchListResponse:
    return MatchListResponse(matches=await matching.list_matches(auth_user.id))
