import pytest


def _seed(store):
	store.add_profile("alice", major="Physics", year=2, interests=["ai", "music"], location_lat=51.505, location_lng=0.05)
	store.add_profile("bob", major="Physics", year=3, interests=["ai", "music"], location_lat=51.505, location_lng=0.05)
	store.add_profile("carol", major="History", year=1, interests=["rowing"], location_lat=51.505, location_lng=0.25)
	store.add_profile("dave", major="physics", year=2, interests=["ai"])


@pytest.mark.asyncio
async def test_recommendations_are_sorted_by_compatibility(api_client, memory_store):
	_seed(memory_store)
	response = await api_client.get("/match/recommendations", headers={"X-User-Id": "alice"})
	assert response.status_code == 200
	items = response.json()["recommendations"]
	assert [item["user_id"] for item in items] == ["bob", "dave", "carol"]
	assert items[0]["compatibility"] == 86
	assert items[1]["distance_km"] is None
	assert items[0]["profile"]["display_name"] == ""


@pytest.mark.asyncio
async def test_recommendations_drop_candidates_beyond_radius(api_client, memory_store):
	_seed(memory_store)
	response = await api_client.get(
		"/match/recommendations",
		params={"radius_km": 5},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 200
	assert [item["user_id"] for item in response.json()["recommendations"]] == ["bob", "dave"]


@pytest.mark.asyncio
async def test_recommendations_accept_camel_case_radius(api_client, memory_store):
	_seed(memory_store)
	response = await api_client.get(
		"/match/recommendations",
		params={"radiusKm": 5},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 200
	assert [item["user_id"] for item in response.json()["recommendations"]] == ["bob", "dave"]


@pytest.mark.asyncio
async def test_recommendations_require_own_profile(api_client, memory_store):
	response = await api_client.get("/match/recommendations", headers={"X-User-Id": "ghost"})
	assert response.status_code == 400
	assert response.json()["code"] == "profile_missing"


@pytest.mark.asyncio
async def test_confirm_and_list_matches(api_client, memory_store):
	response = await api_client.post(
		"/match/confirm",
		json={"userId": "bob", "compatibility": 86},
		headers={"X-User-Id": "alice"},
	)
	assert response.status_code == 200
	assert response.json() == {"success": True, "match_id": "alice_bob"}

	# confirming from the other side lands on the same match id
	again = await api_client.post("/match/confirm", json={"userId": "alice"}, headers={"X-User-Id": "bob"})
	assert again.json()["match_id"] == "alice_bob"
	assert len(memory_store.matches) == 1

	mine = await api_client.get("/match/mine", headers={"X-User-Id": "bob"})
	assert mine.status_code == 200
	matches = mine.json()["matches"]
	assert [match["id"] for match in matches] == ["alice_bob"]
	assert matches[0]["users"] == ["alice", "bob"]


@pytest.mark.asyncio
async def test_self_match_is_rejected(api_client, memory_store):
	response = await api_client.post("/match/confirm", json={"userId": "alice"}, headers={"X-User-Id": "alice"})
	assert response.status_code == 400
	assert response.json()["code"] == "self_match"
