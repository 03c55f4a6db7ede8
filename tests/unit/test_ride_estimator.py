"""Unit tests for the haversine ride estimator."""

import pytest

from corpdate.cabs.estimator import (
    HaversineEstimator,
    Location,
    get_ride_estimator,
    haversine_km,
    reset_ride_estimator,
)


@pytest.fixture
def estimator() -> HaversineEstimator:
    return HaversineEstimator(
        base_fare=50.0,
        per_km_rate=15.0,
        per_minute_rate=2.0,
        minutes_per_km=3.0,
        pickup_estimate_minutes=5,
        currency="INR",
    )


class TestHaversine:
    def test_same_point(self) -> None:
        p = Location(12.97, 77.59)
        assert haversine_km(p, p) == 0

    def test_one_degree_of_latitude(self) -> None:
        assert haversine_km(Location(0, 0), Location(1, 0)) == pytest.approx(111.195, abs=0.01)

    def test_symmetric(self) -> None:
        a, b = Location(12.9716, 77.5946), Location(13.1986, 77.7066)
        assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


class TestEstimate:
    @pytest.mark.asyncio
    async def test_zero_distance_costs_base_fare(self, estimator: HaversineEstimator) -> None:
        p = Location(12.97, 77.59)
        estimate = await estimator.estimate_ride(p, p)
        assert estimate.fare == 50
        assert estimate.distance == 0
        assert estimate.duration == 0
        assert estimate.pickup_estimate == 5
        assert estimate.currency == "INR"

    @pytest.mark.asyncio
    async def test_fare_formula(self, estimator: HaversineEstimator) -> None:
        """111.19 km -> 334 min -> 50 + 111.19*15 + 334*2."""
        estimate = await estimator.estimate_ride(Location(0, 0), Location(1, 0))
        assert estimate.distance == 111.19
        assert estimate.duration == 334
        assert estimate.fare == 2386

    @pytest.mark.asyncio
    async def test_to_dict(self, estimator: HaversineEstimator) -> None:
        estimate = await estimator.estimate_ride(Location(0, 0), Location(0, 0))
        assert estimate.to_dict() == {
            "fare": 50,
            "currency": "INR",
            "distance": 0.0,
            "duration": 0,
            "pickup_estimate": 5,
        }


def test_singleton_built_from_settings() -> None:
    reset_ride_estimator()
    try:
        first = get_ride_estimator()
        assert isinstance(first, HaversineEstimator)
        assert get_ride_estimator() is first
    finally:
        reset_ride_estimator()
