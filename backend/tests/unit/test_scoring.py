import pytest

from campusconnect.domain.proximity.models import Profile
from campusconnect.domain.proximity.scoring import score, shared_interests


def _profile(user_id: str, **fields) -> Profile:
	return Profile(user_id=user_id, **fields)


def test_reference_pair_scores_86():
	a = _profile("a", interests=["ai", "music"], major="Physics", year=2, location_lat=51.5, location_lng=0.05)
	b = _profile("b", interests=["ai", "music"], major="Physics", year=3, location_lat=51.5, location_lng=0.05)
	result = score(a, b)
	assert result.score == 86
	assert result.distance_km == pytest.approx(0.0)


def test_scoring_is_symmetric_without_radius():
	a = _profile("a", interests=["AI", " chess"], major="Biology", year=1, location_lat=51.5, location_lng=0.05)
	b = _profile("b", interests=["chess", "rowing"], major="biology ", year=2, location_lat=51.52, location_lng=0.06)
	assert score(a, b).score == score(b, a).score


def test_interest_points_are_capped():
	tags = ["a", "b", "c", "d", "e"]
	a = _profile("a", interests=tags)
	b = _profile("b", interests=tags)
	# base 30 + capped 30; no coordinates so no proximity points
	assert score(a, b).score == 60
	assert score(a, b).distance_km is None


def test_major_requires_non_empty_exact_match():
	assert score(_profile("a", major=""), _profile("b", major="")).score == 30
	assert score(_profile("a", major="Math"), _profile("b", major="MATH")).score == 45
	assert score(_profile("a", major="Math"), _profile("b", major="Maths")).score == 30


@pytest.mark.parametrize("year_a,year_b,expected", [(2, 2, 40), (2, 3, 36), (2, 4, 30), (None, 2, 30)])
def test_year_points(year_a, year_b, expected):
	assert score(_profile("a", year=year_a), _profile("b", year=year_b)).score == expected


def test_proximity_bonus_decays_per_whole_kilometre():
	a = _profile("a", location_lat=0.0, location_lng=0.0)
	near = _profile("b", location_lat=0.0, location_lng=0.02)  # ~2.2 km
	far = _profile("c", location_lat=0.0, location_lng=0.5)  # ~55 km
	assert score(a, near).score == 30 + 13
	assert score(a, far).score == 30


def test_out_of_radius_penalty_and_clamp():
	a = _profile("a", location_lat=0.0, location_lng=0.0)
	b = _profile("b", location_lat=0.0, location_lng=0.1)  # ~11 km
	result = score(a, b, radius_km=5)
	assert result.score == 0
	assert result.distance_km == pytest.approx(11.1, rel=0.01)


def test_zero_radius_means_no_filter():
	a = _profile("a", location_lat=0.0, location_lng=0.0)
	b = _profile("b", location_lat=0.0, location_lng=0.1)
	assert score(a, b, radius_km=0).score == score(a, b).score


def test_score_never_exceeds_100():
	tags = ["a", "b", "c"]
	a = _profile("a", interests=tags, major="cs", year=3, location_lat=0.0, location_lng=0.0)
	b = _profile("b", interests=tags, major="cs", year=3, location_lat=0.0, location_lng=0.0)
	assert score(a, b).score == 100


def test_shared_interests_are_normalised():
	a = _profile("a", interests=["Chess", "GO ", "chess"])
	b = _profile("b", interests=["go", "chess"])
	assert shared_interests(a, b) == ["chess", "go"]
