"""Staffing adequacy classification. Pure functions, no database access."""
from __future__ import annotations
from enum import Enum


class Fulfillment(str, Enum):
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    GOOD = "GOOD"
    FULL = "FULL"
    OVERSTAFFED_LOW = "OVERSTAFFED_LOW"
    OVERSTAFFED_MEDIUM = "OVERSTAFFED_MEDIUM"
    OVERSTAFFED_HIGH = "OVERSTAFFED_HIGH"


def calculate_fulfillment(required: int, assigned: int) -> Fulfillment:
    """
    Classify ``assigned`` against ``required``.

    Below target: CRITICAL under 50%, LOW for 50-79%, GOOD for 80-99%.
    Above target, by how far over: OVERSTAFFED_LOW under 20%,
    OVERSTAFFED_MEDIUM for 20-50%, OVERSTAFFED_HIGH beyond that.
    """
    if required < 0 or assigned < 0:
        raise ValueError("counts must be non-negative")
    if assigned == required:
        return Fulfillment.FULL
    if required == 0:
        return Fulfillment.OVERSTAFFED_HIGH

    # integer comparisons keep the band edges exact
    if assigned < required:
        if assigned * 100 < required * 50:
            return Fulfillment.CRITICAL
        if assigned * 100 < required * 80:
            return Fulfillment.LOW
        return Fulfillment.GOOD

    over = assigned - required
    if over * 100 < required * 20:
        return Fulfillment.OVERSTAFFED_LOW
    if over * 100 <= required * 50:
        return Fulfillment.OVERSTAFFED_MEDIUM
    return Fulfillment.OVERSTAFFED_HIGH


def fulfillment_percentage(required: int, assigned: int) -> int:
    if required <= 0:
        return 100 if assigned == 0 else 0
    return round(assigned * 100 / required)
