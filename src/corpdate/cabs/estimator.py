"""
Ride fare estimation.

``HaversineEstimator`` prices the great-circle distance between two points
with a base fare plus per-km and per-minute rates. Swap in a vendor-backed
``RideEstimator`` through ``get_ride_estimator`` when one is available.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any

from corpdate.config import get_settings

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str | None = None


@dataclass(frozen=True)
class RideEstimate:
    fare: int
    currency: str
    distance: float  # km, two decimals
    duration: int  # minutes
    pickup_estimate: int  # minutes

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def haversine_km(a: Location, b: Location) -> float:
    """Great-circle distance in kilometres."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class RideEstimator(ABC):
    """Abstract ride-estimate collaborator."""

    @abstractmethod
    async def estimate_ride(self, pickup: Location, dropoff: Location) -> RideEstimate:
        """Estimate a ride. Vendor failures raise UpstreamError."""
        ...


class HaversineEstimator(RideEstimator):
    def __init__(
        self,
        base_fare: float,
        per_km_rate: float,
        per_minute_rate: float,
        minutes_per_km: float,
        pickup_estimate_minutes: int,
        currency: str,
    ) -> None:
        self.base_fare = base_fare
        self.per_km_rate = per_km_rate
        self.per_minute_rate = per_minute_rate
        self.minutes_per_km = minutes_per_km
        self.pickup_estimate_minutes = pickup_estimate_minutes
        self.currency = currency

    async def estimate_ride(self, pickup: Location, dropoff: Location) -> RideEstimate:
        distance = haversine_km(pickup, dropoff)
        duration = round(distance * self.minutes_per_km)
        fare = round(self.base_fare + distance * self.per_km_rate + duration * self.per_minute_rate)
        return RideEstimate(
            fare=fare,
            currency=self.currency,
            distance=round(distance, 2),
            duration=duration,
            pickup_estimate=self.pickup_estimate_minutes,
        )


_estimator: RideEstimator | None = None


def get_ride_estimator() -> RideEstimator:
    """Get the process-wide estimator built from settings."""
    global _estimator  # noqa: PLW0603
    if _estimator is None:
        settings = get_settings()
        _estimator = HaversineEstimator(
            base_fare=settings.ride_base_fare,
            per_km_rate=settings.ride_per_km_rate,
            per_minute_rate=settings.ride_per_minute_rate,
            minutes_per_km=settings.ride_minutes_per_km,
            pickup_estimate_minutes=settings.ride_pickup_estimate_minutes,
            currency=settings.currency,
        )
    return _estimator


def reset_ride_estimator() -> None:
    global _estimator  # noqa: PLW0603
    _estimator = None
