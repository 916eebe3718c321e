from unittest.mock import AsyncMock

import pytest

from campusconnect.domain.proximity import geohash
from campusconnect.domain.proximity.geofence import GEOFENCE_DOCUMENT
from campusconnect.infra import jwt as jwt_helper
from campusconnect.settings import settings


@pytest.mark.asyncio
async def test_owner_can_update_location(api_client, memory_store):
	memory_store.add_profile("alice", location_enabled=True, major="Maths", interests=["chess"])

	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": "51.505", "lng": 0.05},
		headers={"X-User-Id": "alice"},
	)

	assert response.status_code == 200
	body = response.json()
	assert body["success"] is True
	assert body["location"]["location_lat"] == 51.505
	assert body["location"]["location_lng"] == 0.05
	assert body["location"]["location_geohash"] == geohash.encode(51.505, 0.05)
	assert body["location"]["location_updated_at"]
	assert response.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_invalid_coordinates_return_400(api_client, memory_store):
	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": "north", "lng": 0.05},
		headers={"X-User-Id": "alice", "X-Request-Id": "req-abc"},
	)
	assert response.status_code == 400
	body = response.json()
	assert body["code"] == "invalid_coordinates"
	assert body["message"]
	assert body["request_id"] == "req-abc"
	assert "alice" not in memory_store.profiles


@pytest.mark.asyncio
async def test_integer_too_large_for_float_returns_400(api_client, memory_store):
	response = await api_client.patch(
		"/users/alice/location",
		content='{"lat": 1' + "0" * 400 + ', "lng": 0}',
		headers={"X-User-Id": "alice", "Content-Type": "application/json"},
	)
	assert response.status_code == 400
	assert response.json()["code"] == "invalid_coordinates"
	assert "alice" not in memory_store.profiles


@pytest.mark.asyncio
async def test_outside_geofence_returns_403(api_client, memory_store):
	memory_store.admin[GEOFENCE_DOCUMENT] = {"enabled": True, "centerLat": 51.505, "centerLng": 0.05, "radiusMeters": 500}
	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": 48.85, "lng": 2.35},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 403
	assert response.json()["code"] == "outside_geofence"


@pytest.mark.asyncio
async def test_persist_failure_returns_500(api_client, memory_store):
	memory_store.fail_save = True
	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 500
	assert response.json()["code"] == "location_persist_failed"


@pytest.mark.asyncio
async def test_cannot_update_someone_elses_location(api_client, memory_store):
	response = await api_client.patch(
		"/users/bob/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 403
	assert response.json()["detail"] == "forbidden"


@pytest.mark.asyncio
async def test_admin_may_update_any_location(api_client, memory_store):
	response = await api_client.patch(
		"/users/bob/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"X-User-Id": "root", "X-User-Roles": "admin"},
	)
	assert response.status_code == 200
	assert memory_store.profiles["bob"]["location_lat"] == 51.505


@pytest.mark.asyncio
async def test_unauthenticated_request_is_rejected(api_client, memory_store):
	response = await api_client.patch("/users/alice/location", json={"lat": 0, "lng": 0})
	assert response.status_code == 401


@pytest.mark.asyncio
async def test_header_auth_is_ignored_outside_dev(api_client, memory_store, monkeypatch):
	monkeypatch.setattr(settings, "environment", "production")
	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 401

	token = jwt_helper.encode_access({"sub": "alice"})
	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"Authorization": f"Bearer {token}"},
	)
	assert response.status_code == 200


@pytest.mark.asyncio
async def test_rate_limited_updates_return_429(api_client, memory_store, monkeypatch):
	monkeypatch.setattr(settings, "location_update_rate_limit", 1)
	headers = {"X-User-Id": "alice"}
	first = await api_client.patch("/users/alice/location", json={"lat": 1, "lng": 1}, headers=headers)
	assert first.status_code == 200
	# dev mode multiplies the budget by ten
	for _ in range(9):
		await api_client.patch("/users/alice/location", json={"lat": 1, "lng": 1}, headers=headers)
	limited = await api_client.patch("/users/alice/location", json={"lat": 1, "lng": 1}, headers=headers)
	assert limited.status_code == 429
	assert "request_id" in limited.json()


@pytest.mark.asyncio
async def test_nearby_peer_is_notified_through_dispatcher(api_client, memory_store, monkeypatch):
	from datetime import datetime, timezone

	from campusconnect.domain.proximity import service
	from campusconnect.domain.proximity.models import PROXIMITY_EVENT

	memory_store.add_profile("alice", location_enabled=True, major="Maths", interests=["chess"])
	memory_store.add_profile(
		"bob",
		location_enabled=True,
		major="maths",
		interests=["Chess"],
		location_lat=51.5052,
		location_lng=0.05,
		location_geohash=geohash.encode(51.5052, 0.05),
		location_updated_at=datetime.now(timezone.utc),
	)
	send = AsyncMock(return_value=1)
	monkeypatch.setattr(service.dispatcher, "send_to_identity", send)

	response = await api_client.patch(
		"/users/alice/location",
		json={"lat": 51.505, "lng": 0.05},
		headers={"X-User-Id": "alice"},
	)

	assert response.status_code == 200
	assert sorted(call.args[0] for call in send.await_args_list) == ["alice", "bob"]
	assert all(call.args[1] == PROXIMITY_EVENT for call in send.await_args_list)
