"""Who pays what for a cab ride."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CabSplit:
    user_payment: int
    passenger_payment: int


def compute_split(estimated_fare: int, is_arranger_the_rider: bool, max_coverage: int) -> CabSplit:
    """
    Split a fare between the arranger and the rider.

    A self-booked ride is paid in full by the arranger. When booking for the
    partner, the arranger covers up to ``max_coverage`` and the rider pays
    the remainder.
    """
    if estimated_fare < 0:
        msg = "Estimated fare cannot be negative"
        raise ValueError(msg)
    if is_arranger_the_rider:
        return CabSplit(user_payment=estimated_fare, passenger_payment=0)
    covered = min(estimated_fare, max_coverage)
    return CabSplit(user_payment=covered, passenger_payment=estimated_fare - covered)
