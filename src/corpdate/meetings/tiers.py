"""Payment tiers: who pays what for a meeting."""

from __future__ import annotations

from dataclasses import dataclass

from corpdate.config import get_settings
from corpdate.errors import InvalidInputError


@dataclass(frozen=True)
class PaymentSplit:
    boy_payment: int
    girl_payment: int
    total_amount: int


def compute_payment_split(tier: str, tiers: dict[str, list[int]] | None = None) -> PaymentSplit:
    """
    Resolve a tier label to the two shares.

    ``total_amount`` is the tier's face value. For tier "500" each party pays
    500, so the shares add up to more than the face value.

    Raises:
        InvalidInputError: Unknown tier.
    """
    table = tiers if tiers is not None else get_settings().meeting_tiers
    shares = table.get(tier)
    if shares is None:
        msg = f"Invalid payment tier: {tier!r}. Must be one of {sorted(table, key=int)}"
        raise InvalidInputError(msg)
    boy, girl = shares
    return PaymentSplit(boy_payment=boy, girl_payment=girl, total_amount=int(tier))
