import pytest

from nearme.models.schemas import Coordinates, PlaceResult
from nearme.utils.distance import calculate_distance, format_distance


def test_identical_points_are_zero_apart():
    assert calculate_distance(48.8584, 2.2945, 48.8584, 2.2945) == 0


def test_one_degree_of_longitude_on_equator():
    assert calculate_distance(0, 0, 0, 1) == pytest.approx(111195, rel=0.01)


def test_distance_is_symmetric():
    a = calculate_distance(51.5074, -0.1278, 40.7128, -74.0060)
    b = calculate_distance(40.7128, -74.0060, 51.5074, -0.1278)
    assert a == pytest.approx(b)
    assert a == pytest.approx(5_570_000, rel=0.01)


@pytest.mark.parametrize(
    "meters, label",
    [
        (0, "0m away"),
        (999, "999m away"),
        (998.5, "999m away"),
        (1000, "1.0km away"),
        (12345, "12.3km away"),
        (1550, "1.6km away"),
        (1250, "1.3km away"),
        (2250, "2.3km away"),
        (4450, "4.5km away"),
    ],
)
def test_format_distance(meters, label):
    assert format_distance(meters) == label


def test_label_follows_distance():
    place = PlaceResult(id="x", name="X", location=Coordinates(latitude=0, longitude=0), distanceMeters=2500)
    assert place.distanceLabel == "2.5km away"
    assert place.model_dump()["distanceLabel"] == "2.5km away"
