import math
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import requests

from config import Configuration
from models import Coordinate
from services.places import GooglePlacesClient, PlacesError, _NearbyCache, normalize_place

ORIGIN = Coordinate(37.9838, 23.7275)

RAW_ACROPOLIS = {
    "place_id": "ChIJ86z4dBq9oRQR",
    "name": "Acropolis Museum",
    "rating": 4.8,
    "user_ratings_total": 61234,
    "vicinity": "Dionysiou Areopagitou 15, Athina",
    "types": ["museum", "Tourist_Attraction", "point_of_interest", "museum"],
    "opening_hours": {"open_now": True},
    "price_level": 2,
    "geometry": {"location": {"lat": 37.9685, "lng": 23.7285}},
}


def _client(*responses) -> GooglePlacesClient:
    client = GooglePlacesClient(Configuration(google_maps_api_key="test-key"))
    client.session = MagicMock()
    client.session.get.side_effect = list(responses)
    return client


def _ok(payload) -> MagicMock:
    resp = MagicMock(ok=True, status_code=200, text="")
    resp.json.return_value = payload
    return resp


def test_normalize_place_maps_fields():
    place = normalize_place(RAW_ACROPOLIS)

    assert place is not None
    assert place.place_id == "ChIJ86z4dBq9oRQR"
    assert place.name == "Acropolis Museum"
    assert place.types == ["museum", "tourist_attraction", "point_of_interest"]
    assert place.rating == 4.8
    assert place.user_ratings_total == 61234
    assert place.open_now is True
    assert place.price_level == 2
    assert (place.lat, place.lng) == (37.9685, 23.7285)


def test_normalize_place_defaults():
    place = normalize_place({"place_id": "x", "geometry": {"location": {"lat": "38.0", "lng": 23.7}}})
    assert place.name == "Place"
    assert place.lat == 38.0
    assert place.types == []
    assert place.open_now is None
    assert place.price_level is None
    assert place.rating is None
    assert place.vicinity is None


def test_normalize_place_without_identity_is_dropped():
    assert normalize_place({"name": "Nameless"}) is None
    assert normalize_place({"place_id": "", "name": "Empty"}) is None


def test_normalize_place_without_coordinates_marks_nan():
    place = normalize_place({"place_id": "x", "name": "Nowhere"})
    assert math.isnan(place.lat) and math.isnan(place.lng)


def test_nearby_sends_one_type_and_parses_results():
    client = _client(_ok({"status": "OK", "results": [RAW_ACROPOLIS, {"name": "no id"}]}))

    places = client.nearby(ORIGIN, 3000, "museum")

    assert [p.place_id for p in places] == ["ChIJ86z4dBq9oRQR"]
    args, kwargs = client.session.get.call_args
    assert args[0].endswith("/maps/api/place/nearbysearch/json")
    assert kwargs["params"]["type"] == "museum"
    assert kwargs["params"]["radius"] == 3000
    assert kwargs["params"]["location"] == "37.9838,23.7275"
    assert kwargs["params"]["key"] == "test-key"


def test_nearby_zero_results_is_empty():
    client = _client(_ok({"status": "ZERO_RESULTS", "results": []}))
    assert client.nearby(ORIGIN, 3000, "bar") == []


def test_nearby_directory_error_status_raises():
    client = _client(_ok({"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}))
    with pytest.raises(PlacesError, match="REQUEST_DENIED"):
        client.nearby(ORIGIN, 3000, "bar")


def test_nearby_uses_cache():
    client = _client(_ok({"status": "OK", "results": [RAW_ACROPOLIS]}))
    first = client.nearby(ORIGIN, 3000, "museum")
    second = client.nearby(ORIGIN, 3000, "museum")
    assert first == second
    assert client.session.get.call_count == 1


@patch("services.places.time.sleep")
def test_retries_transient_errors(mock_sleep):
    throttled = MagicMock(ok=False, status_code=429, text="slow down")
    client = _client(requests.ConnectionError("reset"), throttled, _ok({"status": "OK", "results": [RAW_ACROPOLIS]}))

    places = client.nearby(ORIGIN, 3000, "museum")

    assert len(places) == 1
    assert client.session.get.call_count == 3
    assert mock_sleep.call_count == 2


@patch("services.places.time.sleep")
def test_gives_up_after_retries(mock_sleep):
    client = _client(*[requests.Timeout("slow")] * 4)
    with pytest.raises(PlacesError, match="request error"):
        client.nearby(ORIGIN, 3000, "museum")
    assert client.session.get.call_count == 4


def test_client_error_is_not_retried():
    bad = MagicMock(ok=False, status_code=400, text="bad request")
    client = _client(bad)
    with pytest.raises(PlacesError, match="upstream 400"):
        client.nearby(ORIGIN, 3000, "museum")
    assert client.session.get.call_count == 1


def test_invalid_json_raises():
    resp = MagicMock(ok=True, status_code=200)
    resp.json.side_effect = ValueError("nope")
    with pytest.raises(PlacesError, match="invalid json"):
        _client(resp).nearby(ORIGIN, 3000, "museum")


def test_normalize_place_discards_out_of_range_numbers():
    place = normalize_place(
        {
            "place_id": "x",
            "rating": 7.5,
            "user_ratings_total": -1,
            "price_level": 9,
            "geometry": {"location": {"lat": 38.0, "lng": 23.7}},
        }
    )
    assert place.rating is None
    assert place.user_ratings_total is None
    assert place.price_level is None


def test_normalize_place_discards_non_finite_and_boolean_numbers():
    for bad in (math.inf, math.nan, True):
        place = normalize_place(
            {"place_id": "x", "rating": bad, "user_ratings_total": bad, "price_level": bad}
        )
        assert (place.rating, place.user_ratings_total, place.price_level) == (None, None, None)


def test_one_malformed_result_does_not_drop_its_neighbours():
    good = {**RAW_ACROPOLIS, "place_id": "good", "user_ratings_total": 100}
    bad = {**RAW_ACROPOLIS, "place_id": "bad", "user_ratings_total": math.inf, "price_level": math.nan}
    client = _client(_ok({"status": "OK", "results": [good, bad]}))

    places = client.nearby(ORIGIN, 3000, "museum")

    assert [p.place_id for p in places] == ["good", "bad"]
    assert places[1].user_ratings_total is None
    assert places[1].price_level is None


def test_cache_expires_and_evicts_oldest():
    cache = _NearbyCache(ttl=60, max_entries=2)
    cache.put("a", [])
    cache.put("b", [])
    assert cache.get("a") == []
    cache.put("c", [])
    assert cache.get("b") is None
    assert len(cache) == 2

    with patch("services.places.time.time", return_value=time.time() + 120):
        assert cache.get("a") is None
    assert len(cache) == 1


def test_cache_is_safe_across_threads():
    cache = _NearbyCache(ttl=0, max_entries=4)
    errors = []

    def hammer(n):
        try:
            for i in range(500):
                key = f"k{(n + i) % 6}"
                cache.put(key, [])
                cache.get(key)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=hammer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) <= 4
