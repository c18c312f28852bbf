# gymgain/booking.py
"""
booking.py
────────────────────────────────────────────
Books and cancels classes against a member's token balance.

Both operations run as one transaction through TransactionCoordinator:

 book(member, schedule_id, booking_date)
   1. lock the schedule row (joined to its activity)
   2. lock the member row, refresh balance + tier
   3. count confirmed bookings, check for a duplicate, apply policy
   4. insert the booking only while the occurrence is below capacity
   5. debit the cost only while the balance covers it
   6. read back the new balance

 cancel(member, booking_id)
   1. lock the booking, constrained to the requesting member
   2. delete it
   3. credit the activity cost back
   4. read back the new balance

Every check is re-done inside the transaction and every write is
conditional, so two requests racing for the last seat cannot both commit.
The member context passed in is never mutated; results carry an updated copy.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Optional

from sqlalchemy import Date, Integer, String, delete, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import InvariantViolation, PolicyRejection, ValidationError
from .member import MemberContext
from .models import BOOKING_CONFIRMED, MAX_ID, Activity, Booking, ScheduleSlot, User
from .policy import Rejection, SlotOffer, evaluate_booking, parse_booking_date
from .transactions import TransactionCoordinator

log = logging.getLogger(__name__)

# Writes go through the Core tables so rowcount is always reported.
_users = User.__table__
_bookings = Booking.__table__


@dataclass
class BookingResult:
    booking_id: int
    schedule_id: int
    booking_date: date
    cost: int
    activity_name: str
    member: MemberContext


@dataclass
class CancelResult:
    booking_id: int
    refund: int
    activity_name: str
    member: MemberContext


# Mutable scratchpad shared by the steps of one transaction.
@dataclass
class _BookPlan:
    member: MemberContext
    schedule_id: int
    booking_date: date
    slot: Optional[SlotOffer] = None
    cost: int = 0
    booking_id: Optional[int] = None
    balance_after: Optional[int] = None


@dataclass
class _CancelPlan:
    member: MemberContext
    booking_id: int
    refund: int = 0
    activity_name: str = ""
    balance_after: Optional[int] = None


def _coerce_id(value, what: str) -> int:
    try:
        ident = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {what} selected.", f"invalid {what}")
    if not 0 < ident <= MAX_ID:
        raise ValidationError(f"Invalid {what} selected.", f"invalid {what}")
    return ident


class BookingEngine:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    # ─────────────────────────────────────────────
    # Book
    # ─────────────────────────────────────────────
    def book(self, member: MemberContext, schedule_id, booking_date) -> BookingResult:
        log.info(f"[BOOKING] Attempt started: User {member.id} -> Schedule {schedule_id} on {booking_date}")

        day = parse_booking_date(booking_date)
        if day is None:
            log.warning(f"[BOOKING] Failed: invalid booking date {booking_date!r} for User {member.id}")
            raise ValidationError.from_rejection(Rejection.INVALID_DATE)
        sid = _coerce_id(schedule_id, "class")

        plan = _BookPlan(member=member, schedule_id=sid, booking_date=day)
        coordinator = TransactionCoordinator(
            self._session_factory,
            label="BOOKING",
            failure_message="Booking failed. Please try again.",
        )
        coordinator.run([
            partial(self._lock_slot, plan),
            partial(self._lock_member, plan),
            partial(self._apply_policy, plan),
            partial(self._insert_booking, plan),
            partial(self._debit_tokens, plan),
            partial(self._read_balance, plan),
        ])

        updated = plan.member.with_balance(plan.balance_after)
        log.info(
            f"[BOOKING] Success: User {member.id} booked Sched {sid} on {day}. "
            f"New Balance: {updated.token_balance}"
        )
        return BookingResult(
            booking_id=plan.booking_id,
            schedule_id=sid,
            booking_date=day,
            cost=plan.cost,
            activity_name=plan.slot.activity_name,
            member=updated,
        )

    def _lock_slot(self, plan: _BookPlan, s: Session) -> SlotOffer:
        row = s.execute(
            select(
                ScheduleSlot.id,
                ScheduleSlot.capacity,
                Activity.cost,
                Activity.tier_required,
                Activity.name,
            )
            .join(Activity, ScheduleSlot.activity_id == Activity.id)
            .where(ScheduleSlot.id == plan.schedule_id)
            .with_for_update(of=ScheduleSlot)
        ).first()
        if row is None:
            log.warning(f"[BOOKING] Failed: Schedule {plan.schedule_id} not found.")
            raise PolicyRejection(Rejection.CLASS_NOT_FOUND)

        plan.slot = SlotOffer(
            schedule_id=row.id,
            capacity=row.capacity,
            cost=row.cost,
            tier_required=row.tier_required,
            activity_name=row.name,
        )
        log.info(
            f"[BOOKING] Class Info: {row.name} (Cost: {row.cost}, Tier: {row.tier_required}, "
            f"Capacity: {row.capacity})"
        )
        return plan.slot

    def _lock_member(self, plan: _BookPlan, s: Session) -> MemberContext:
        row = s.execute(
            select(User.token_balance, User.membership_tier)
            .where(User.id == plan.member.id)
            .with_for_update()
        ).first()
        if row is None:
            raise ValidationError("Your account could not be found. Please log in again.", "unknown member")
        plan.member = plan.member.refreshed(row.token_balance, row.membership_tier)
        return plan.member

    def _apply_policy(self, plan: _BookPlan, s: Session) -> int:
        confirmed = s.execute(
            select(func.count(Booking.id)).where(
                Booking.schedule_id == plan.schedule_id,
                Booking.booking_date == plan.booking_date,
                Booking.status == BOOKING_CONFIRMED,
            )
        ).scalar_one()
        existing = s.execute(
            select(Booking.id).where(
                Booking.user_id == plan.member.id,
                Booking.schedule_id == plan.schedule_id,
                Booking.booking_date == plan.booking_date,
            )
        ).first()

        decision = evaluate_booking(
            plan.slot,
            plan.booking_date,
            confirmed_count=confirmed,
            already_booked=existing is not None,
            token_balance=plan.member.token_balance,
            membership_tier=plan.member.membership_tier,
        )
        if not decision.accepted:
            log.info(
                f"[BOOKING] Rejected ({decision.rejection.reason}): User {plan.member.id} "
                f"balance={plan.member.token_balance} tier={plan.member.membership_tier} "
                f"booked={confirmed}/{plan.slot.capacity}"
            )
            raise PolicyRejection(decision.rejection)

        plan.cost = decision.cost
        return confirmed

    def _insert_booking(self, plan: _BookPlan, s: Session) -> int:
        confirmed = (
            select(func.count(Booking.id))
            .where(
                Booking.schedule_id == plan.schedule_id,
                Booking.booking_date == plan.booking_date,
                Booking.status == BOOKING_CONFIRMED,
            )
            .correlate(None)
            .scalar_subquery()
        )
        stmt = insert(_bookings).from_select(
            ["user_id", "schedule_id", "booking_date", "status"],
            select(
                literal(plan.member.id, Integer),
                literal(plan.schedule_id, Integer),
                literal(plan.booking_date, Date),
                literal(BOOKING_CONFIRMED, String),
            ).where(confirmed < plan.slot.capacity),
        )
        try:
            result = s.execute(stmt)
        except IntegrityError:
            log.info(f"[BOOKING] Rejected: duplicate insert for User {plan.member.id} Sched {plan.schedule_id}")
            raise PolicyRejection(Rejection.ALREADY_BOOKED)

        if result.rowcount != 1:
            log.info(f"[BOOKING] Rejected: Sched {plan.schedule_id} filled up on {plan.booking_date}")
            raise PolicyRejection(Rejection.CLASS_FULL)

        plan.booking_id = s.execute(
            select(Booking.id).where(
                Booking.user_id == plan.member.id,
                Booking.schedule_id == plan.schedule_id,
                Booking.booking_date == plan.booking_date,
            )
        ).scalar_one()
        return plan.booking_id

    def _debit_tokens(self, plan: _BookPlan, s: Session) -> None:
        result = s.execute(
            update(_users)
            .where(_users.c.id == plan.member.id, _users.c.token_balance >= plan.cost)
            .values(token_balance=_users.c.token_balance - plan.cost)
        )
        if result.rowcount != 1:
            log.info(f"[BOOKING] Rejected: balance for User {plan.member.id} dropped below {plan.cost}")
            raise PolicyRejection(Rejection.INSUFFICIENT_TOKENS)

    def _read_balance(self, plan, s: Session) -> int:
        plan.balance_after = s.execute(
            select(User.token_balance).where(User.id == plan.member.id)
        ).scalar_one()
        return plan.balance_after

    # ─────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────
    def cancel(self, member: MemberContext, booking_id) -> CancelResult:
        log.info(f"[CANCEL] Attempt started: User {member.id} -> Booking {booking_id}")
        bid = _coerce_id(booking_id, "booking")

        plan = _CancelPlan(member=member, booking_id=bid)
        coordinator = TransactionCoordinator(
            self._session_factory,
            label="CANCEL",
            failure_message="Cancellation failed. Please try again.",
        )
        coordinator.run([
            partial(self._find_owned_booking, plan),
            partial(self._delete_booking, plan),
            partial(self._refund_tokens, plan),
            partial(self._read_balance, plan),
        ])

        updated = member.with_balance(plan.balance_after)
        log.info(f"[CANCEL] Success: Refunded {plan.refund} to User {member.id}. New Balance: {updated.token_balance}")
        return CancelResult(
            booking_id=bid,
            refund=plan.refund,
            activity_name=plan.activity_name,
            member=updated,
        )

    def _find_owned_booking(self, plan: _CancelPlan, s: Session) -> int:
        row = s.execute(
            select(Booking.id, Activity.cost, Activity.name)
            .join(ScheduleSlot, Booking.schedule_id == ScheduleSlot.id)
            .join(Activity, ScheduleSlot.activity_id == Activity.id)
            .where(Booking.id == plan.booking_id, Booking.user_id == plan.member.id)
            .with_for_update(of=Booking)
        ).first()
        if row is None:
            log.warning(f"[CANCEL] Failed: Booking {plan.booking_id} not found/owned by User {plan.member.id}")
            raise PolicyRejection(Rejection.BOOKING_NOT_FOUND)

        plan.refund = row.cost
        plan.activity_name = row.name
        log.info(f"[CANCEL] Found Booking: {row.name} (Refund Amount: {row.cost})")
        return plan.refund

    def _delete_booking(self, plan: _CancelPlan, s: Session) -> None:
        result = s.execute(
            delete(_bookings)
            .where(_bookings.c.id == plan.booking_id, _bookings.c.user_id == plan.member.id)
        )
        if result.rowcount != 1:
            # Another request cancelled it between the read and the delete.
            raise PolicyRejection(Rejection.BOOKING_NOT_FOUND)

    def _refund_tokens(self, plan: _CancelPlan, s: Session) -> None:
        result = s.execute(
            update(_users)
            .where(_users.c.id == plan.member.id)
            .values(token_balance=_users.c.token_balance + plan.refund)
        )
        if result.rowcount != 1:
            log.error(f"[CANCEL] Refund Failed: no user row {plan.member.id}")
            raise InvariantViolation("Refund failed.", "refund failed")
