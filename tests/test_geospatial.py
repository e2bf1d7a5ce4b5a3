import math

import pytest

from driver_routes.models.domain import GeoPoint
from driver_routes.services.geospatial import EARTH_RADIUS_KM, haversine_km, is_valid_point

MEXICO_CITY = GeoPoint(19.4326, -99.1332)
PUEBLA = GeoPoint(19.0414, -98.2063)
QUERETARO = GeoPoint(20.5888, -100.3899)


def test_distance_to_same_point_is_zero():
    for point in (MEXICO_CITY, PUEBLA, GeoPoint(-33.8688, 151.2093)):
        assert haversine_km(point, point) == 0.0


def test_distance_is_symmetric():
    assert haversine_km(MEXICO_CITY, PUEBLA) == pytest.approx(haversine_km(PUEBLA, MEXICO_CITY))


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_KM * math.pi / 180
    assert haversine_km(GeoPoint(10.0, 20.0), GeoPoint(11.0, 20.0)) == pytest.approx(expected)


def test_known_city_distance():
    # Mexico City to Puebla is roughly 106.6 km in a straight line
    assert haversine_km(MEXICO_CITY, PUEBLA) == pytest.approx(106.6, abs=1)


def test_triangle_inequality():
    direct = haversine_km(PUEBLA, QUERETARO)
    via = haversine_km(PUEBLA, MEXICO_CITY) + haversine_km(MEXICO_CITY, QUERETARO)
    assert direct <= via + 1e-9


def test_nan_propagates():
    assert math.isnan(haversine_km(GeoPoint(math.nan, 1.0), MEXICO_CITY))


@pytest.mark.parametrize(
    "point, expected",
    [
        (MEXICO_CITY, True),
        (GeoPoint(0.0, 0.0), False),
        (GeoPoint(19.4, 0.0), False),
        (GeoPoint(math.nan, -99.1), False),
        (GeoPoint(19.4, math.inf), False),
        (GeoPoint(91.0, 10.0), False),
        (GeoPoint(45.0, -181.0), False),
        (None, False),
    ],
)
def test_is_valid_point(point, expected):
    assert is_valid_point(point) is expected
