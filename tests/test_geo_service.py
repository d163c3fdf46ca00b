"""Tests for the geodesic distance helpers."""

import pytest

from mtokaa.services.geo_service import Coordinate, bounding_box, distance_km, haversine

CBD = Coordinate(-1.2921, 36.8219)
WESTLANDS = Coordinate(-1.3031, 36.8331)
MOMBASA = Coordinate(-4.0435, 39.6682)


class TestCoordinate:
    def test_valid(self):
        assert CBD.is_valid()

    def test_out_of_range(self):
        assert not Coordinate(91.0, 0.0).is_valid()
        assert not Coordinate(0.0, -180.5).is_valid()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            CBD.latitude = 0.0  # type: ignore[misc]


class TestDistanceKm:
    def test_same_point_is_zero(self):
        assert distance_km(CBD, CBD) == 0.0

    def test_symmetry(self):
        assert distance_km(CBD, MOMBASA) == pytest.approx(distance_km(MOMBASA, CBD))

    def test_cbd_to_westlands(self):
        assert distance_km(CBD, WESTLANDS) == pytest.approx(1.6, abs=0.2)

    def test_nairobi_to_mombasa(self):
        """Roughly 440 km as the crow flies."""
        assert 420 < distance_km(CBD, MOMBASA) < 460

    def test_non_negative_across_antimeridian(self):
        a = Coordinate(0.0, 179.9)
        b = Coordinate(0.0, -179.9)
        assert 0 < distance_km(a, b) < 25

    def test_haversine_matches_coordinate_form(self):
        assert haversine(-1.2921, 36.8219, -1.3031, 36.8331) == pytest.approx(distance_km(CBD, WESTLANDS))


class TestBoundingBox:
    def test_contains_points_inside_radius(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(CBD.latitude, CBD.longitude, 5)
        assert min_lat < WESTLANDS.latitude < max_lat
        assert min_lon < WESTLANDS.longitude < max_lon

    def test_excludes_far_points(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(CBD.latitude, CBD.longitude, 50)
        assert not (min_lat < MOMBASA.latitude < max_lat and min_lon < MOMBASA.longitude < max_lon)

    def test_half_height_matches_radius(self):
        min_lat, max_lat, _, _ = bounding_box(0.0, 0.0, 10)
        half_height = distance_km(Coordinate(0.0, 0.0), Coordinate(max_lat, 0.0))
        assert half_height == pytest.approx(10, rel=1e-6)
        assert min_lat == pytest.approx(-max_lat)
