import pytest

from fittrack.core.errors import PersistenceError, RouteDecodeError
from fittrack.core.geo import haversine_km, route_distance_km
from fittrack.schemas.activity import GeoPoint
from fittrack.storage.route_codec import decode_route, encode_route

POINTS = [
    GeoPoint(latitude=0.0, longitude=0.0),
    GeoPoint(latitude=52.3676, longitude=4.9041),
    GeoPoint(latitude=-33.8688, longitude=151.2093),
    GeoPoint(latitude=89.9999, longitude=-179.9999),
    GeoPoint(latitude=40.712776, longitude=-74.005974),
]


@pytest.mark.parametrize("p", POINTS)
def test_haversine_same_point_is_zero(p):
    assert haversine_km(p, p) == 0.0


def test_haversine_is_symmetric():
    for a in POINTS:
        for b in POINTS:
            assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


def test_haversine_one_degree_at_equator():
    a = GeoPoint(latitude=0, longitude=0)
    assert haversine_km(a, GeoPoint(latitude=0, longitude=1)) == pytest.approx(111.19, rel=0.005)
    assert haversine_km(a, GeoPoint(latitude=1, longitude=0)) == pytest.approx(111.19, rel=0.005)


def test_route_distance_of_short_routes_is_zero():
    assert route_distance_km([]) == 0.0
    assert route_distance_km(POINTS[:1]) == 0.0


def test_route_round_trip_keeps_order_and_values():
    route = POINTS + [POINTS[0], GeoPoint(latitude=0.1 + 0.2, longitude=1e-12)]
    assert decode_route(encode_route(route)) == route


def test_encoded_route_is_a_json_array_of_coordinates():
    text = encode_route([GeoPoint(latitude=1.5, longitude=-2.25)])
    assert text == '[{"latitude":1.5,"longitude":-2.25}]'


def test_empty_and_null_routes():
    assert decode_route(encode_route([])) == []
    assert decode_route(None) == []


@pytest.mark.parametrize(
    "text",
    [
        "",
        "not json",
        '{"latitude": 1, "longitude": 2}',
        '[{"latitude": 1}]',
        '[[1, 2]]',
        '[{"latitude": "north", "longitude": 2}]',
        '[{"latitude": "1", "longitude": "2"}]',
    ],
)
def test_malformed_route_raises_decode_error(text):
    with pytest.raises(RouteDecodeError):
        decode_route(text)


def test_decode_error_is_a_persistence_error():
    with pytest.raises(PersistenceError):
        decode_route("[")


def test_integer_coordinates_decode_as_floats():
    assert decode_route('[{"latitude": 1, "longitude": -2}]') == [GeoPoint(latitude=1.0, longitude=-2.0)]
