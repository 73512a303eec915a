import pytest

from models import Coordinate
from utils import clamp01, haversine_km, mask_secret, parse_enum

ATHENS = Coordinate(37.9838, 23.7275)
THESSALONIKI = Coordinate(40.6401, 22.9444)


def test_haversine_is_symmetric():
    assert haversine_km(ATHENS, THESSALONIKI) == haversine_km(THESSALONIKI, ATHENS)


def test_haversine_zero_for_same_point():
    assert haversine_km(ATHENS, ATHENS) == 0.0


def test_haversine_known_distance():
    # Athens to Thessaloniki is roughly 300 km as the crow flies
    assert 295 < haversine_km(ATHENS, THESSALONIKI) < 310


def test_haversine_one_degree_latitude():
    km = haversine_km(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
    assert km == pytest.approx(111.19, abs=0.05)


def test_clamp01():
    assert clamp01(-0.5) == 0.0
    assert clamp01(1.7) == 1.0
    assert clamp01(0.42) == 0.42


def test_parse_enum_coerces_unknown_values():
    assert parse_enum("bogus", ["a", "b"], "a") == "a"
    assert parse_enum(None, ["a", "b"], "a") == "a"
    assert parse_enum("", ["a", "b"], "b") == "b"


def test_parse_enum_is_case_insensitive():
    assert parse_enum("B", ["a", "b"], "a") == "b"
    assert parse_enum("  b ", ["a", "b"], "a") == "b"


def test_mask_secret():
    assert mask_secret(None) == "unset"
    assert mask_secret("short") == "*****"
    assert mask_secret("AIzaSyExampleKey1234") == "AIza...1234"
