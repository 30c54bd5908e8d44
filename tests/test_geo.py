import math

import pytest

from fixer.models.professional import Candidate, Coordinates, Locality, LocalityTier, is_valid_coordinates
from fixer.services.geo import (
    distance_km,
    format_address_short,
    format_distance,
    format_location,
    geo_ranker,
    locality_tier,
)

from .conftest import LAGOS, professional

ORIGIN = Coordinates(**LAGOS)
ABUJA = Coordinates(lat=9.0765, lng=7.3986)


def test_distance_to_same_point_is_zero():
    assert distance_km(ORIGIN, ORIGIN) == 0.0


def test_distance_is_symmetric():
    assert distance_km(ORIGIN, ABUJA) == distance_km(ABUJA, ORIGIN)


def test_distance_lagos_to_abuja():
    assert 500 < distance_km(ORIGIN, ABUJA) < 550


def test_antipodal_points_do_not_fail():
    d = distance_km(Coordinates(lat=0, lng=0), Coordinates(lat=0, lng=180))
    assert d == pytest.approx(math.pi * 6371.0)


@pytest.mark.parametrize(
    "km,label",
    [
        (None, "Unknown"),
        (0.0, "0 m"),
        (0.5, "500 m"),
        (2.345, "2.3 km"),
        (9.94, "9.9 km"),
        (10, "10 km"),
        (12.6, "13 km"),
    ],
)
def test_format_distance(km, label):
    assert format_distance(km) == label


def test_locality_tier_ignores_case_and_whitespace():
    viewer = Locality(city="Lagos", region="Lagos State")
    assert locality_tier(viewer, Locality(city=" lagos ")) is LocalityTier.SAME_CITY
    assert locality_tier(viewer, Locality(city="Ikeja", region="LAGOS STATE")) is LocalityTier.SAME_REGION
    assert locality_tier(viewer, Locality(city="Abuja", region="FCT")) is LocalityTier.OTHER_REGION


def test_missing_locality_never_matches():
    assert locality_tier(Locality(), Locality()) is LocalityTier.OTHER_REGION
    assert locality_tier(None, Locality(city="Lagos")) is LocalityTier.OTHER_REGION


def test_rank_orders_by_tier_then_distance():
    viewer = Locality(city="Lagos", region="Lagos State")
    candidates = [
        Candidate.from_payload(professional("abuja", "Abuja", "FCT", coords=(9.0765, 7.3986))),
        Candidate.from_payload(professional("ikeja", "Ikeja", "Lagos State", coords=(6.60, 3.35))),
        Candidate.from_payload(professional("nocoords", "Lagos", "Lagos State")),
        Candidate.from_payload(professional("far", "Lagos", "Lagos State", coords=(6.45, 3.60))),
        Candidate.from_payload(professional("near", "lagos", "Lagos State", coords=(6.53, 3.38))),
    ]

    ranked = geo_ranker.rank(ORIGIN, candidates, viewer)

    assert [c.id for c in ranked] == ["near", "far", "nocoords", "ikeja", "abuja"]
    assert ranked[2].distance_km is None
    assert ranked[0].tier is LocalityTier.SAME_CITY
    assert ranked[3].tier is LocalityTier.SAME_REGION


def test_rank_is_stable_on_ties():
    candidates = [Candidate.from_payload(professional(pid, coords=(6.5244, 3.3792))) for pid in ("b", "c", "a")]
    ranked = geo_ranker.rank(ORIGIN, candidates, Locality(city="Lagos"))
    assert [c.id for c in ranked] == ["a", "b", "c"]
    assert geo_ranker.rank(ORIGIN, list(reversed(candidates)), Locality(city="Lagos")) == ranked


def test_rank_without_origin_keeps_tiers():
    candidates = [
        Candidate.from_payload(professional("x", "Abuja", "FCT", coords=(9.0, 7.4))),
        Candidate.from_payload(professional("y", "Lagos", "Lagos", coords=(6.5, 3.4))),
    ]
    ranked = geo_ranker.rank(None, candidates, Locality(city="Lagos"))
    assert [c.id for c in ranked] == ["y", "x"]
    assert all(c.distance_km is None for c in ranked)


def test_rank_does_not_mutate_input():
    candidate = Candidate.from_payload(professional("p", coords=(6.5, 3.4)))
    geo_ranker.rank(ORIGIN, [candidate])
    assert candidate.distance_km is None
    assert candidate.tier is None


@pytest.mark.parametrize(
    "lat,lng,valid",
    [(6.5, 3.3, True), (90, 180, True), (91, 0, False), (0, -181, False), (float("nan"), 0, False), ("6", 3, False)],
)
def test_is_valid_coordinates(lat, lng, valid):
    assert is_valid_coordinates(lat, lng) is valid


def test_coordinate_shapes():
    assert Coordinates.from_raw({"lat": 1, "lng": 2}) == Coordinates(lat=1, lng=2)
    assert Coordinates.from_raw({"latitude": "1.5", "longitude": "2.5"}) == Coordinates(lat=1.5, lng=2.5)
    assert Coordinates.from_raw({"type": "Point", "coordinates": [3.4, 6.5]}) == Coordinates(lat=6.5, lng=3.4)
    assert Coordinates.from_raw({"lat": 100, "lng": 0}) is None
    assert Coordinates.from_raw(None) is None


def test_format_location():
    assert format_location(Locality(city="Ikeja", region="Lagos")) == "Ikeja, Lagos"
    assert format_location(Locality(region="Lagos")) == "Lagos"
    assert format_location(None) == "Location not set"


def test_format_address_short():
    address = "12 Oshodi Road, Oshodi, Oshodi/Isolo, Lagos, 100271, Nigeria"
    assert format_address_short(address) == "Oshodi/Isolo, Nigeria"
    assert format_address_short("5 Allen Avenue, Ikeja, 100001, Nigeria") == "Ikeja, Nigeria"
    assert format_address_short("Nigeria") == "Nigeria"
    assert format_address_short("") == "Location"
