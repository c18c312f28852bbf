# gymgain/policy.py
"""
policy.py
────────────────────────────────────────────
Capacity & tier rules for class bookings.

Pure decision logic: no database access, no Flask. The booking engine feeds it
the slot, the occurrence date, the current confirmed count and the member, and
gets back either an accepted decision (carrying the cost to debit) or the
first rule that failed.

Rule order matters (first failure wins):
  1. occurrence date present and well-formed
  2. member not already booked on that occurrence
  3. occurrence below capacity
  4. balance covers the cost
  5. membership tier meets the activity's requirement
────────────────────────────────────────────
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

# ── Membership tiers ─────────────────────────────────
TIER_ORDINALS = {
    "base": 1,
    "silver": 2,
    "gold": 3,
}


def tier_ordinal(tier: Optional[str]) -> int:
    """Unknown or missing tiers rank as base."""
    return TIER_ORDINALS.get((tier or "").strip().lower(), 1)


# ── Rejections ───────────────────────────────────────
class Rejection(enum.Enum):
    INVALID_DATE = ("invalid date", "Invalid booking date selected.")
    ALREADY_BOOKED = ("already booked", "You have already booked this class!")
    CLASS_FULL = ("class full", "Class is full!")
    INSUFFICIENT_TOKENS = ("insufficient tokens", "Insufficient tokens! Please top up.")
    TIER_TOO_LOW = ("tier too low", "This class requires a higher membership tier!")
    CLASS_NOT_FOUND = ("class not found", "Class not found.")
    BOOKING_NOT_FOUND = ("not found", "Booking not found.")

    def __init__(self, reason: str, message: str):
        self.reason = reason
        self.message = message


# ── Inputs / outputs ─────────────────────────────────
@dataclass(frozen=True)
class SlotOffer:
    schedule_id: int
    capacity: int
    cost: int
    tier_required: int
    activity_name: str = ""


@dataclass(frozen=True)
class Decision:
    rejection: Optional[Rejection] = None
    cost: int = 0

    @property
    def accepted(self) -> bool:
        return self.rejection is None


def parse_booking_date(value) -> Optional[date]:
    """Return the calendar date for a `YYYY-MM-DD` value, or None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def evaluate_booking(
    slot: SlotOffer,
    booking_date,
    confirmed_count: int,
    already_booked: bool,
    token_balance: int,
    membership_tier: Optional[str],
) -> Decision:
    if parse_booking_date(booking_date) is None:
        return Decision(Rejection.INVALID_DATE)
    if already_booked:
        return Decision(Rejection.ALREADY_BOOKED)
    if confirmed_count >= slot.capacity:
        return Decision(Rejection.CLASS_FULL)
    if token_balance < slot.cost:
        return Decision(Rejection.INSUFFICIENT_TOKENS)
    if slot.tier_required > tier_ordinal(membership_tier):
        return Decision(Rejection.TIER_TOO_LOW)
    return Decision(cost=slot.cost)
