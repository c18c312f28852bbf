# gymgain/queries.py
"""
Read-only queries behind the schedule, dashboard, social and routine pages.
Writes live in booking.py and routines.py.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import case, func, select

from .db import get_session
from .models import BOOKING_CONFIRMED, Activity, Booking, Routine, RoutineExercise, ScheduleSlot, User
from .utils import DAY_NAMES

_DAY_ORDER = case({name: idx for idx, name in enumerate(DAY_NAMES)}, value=ScheduleSlot.day, else_=7)


def get_user(user_id: int) -> Optional[User]:
    with get_session() as s:
        return s.get(User, user_id)


def get_user_by_email(email: str) -> Optional[User]:
    with get_session() as s:
        return s.execute(select(User).where(User.email == email)).scalar_one_or_none()


def weekly_schedule(week_dates: Dict[str, date], search: str | None = None) -> List[Dict]:
    """Every slot with its activity and the confirmed count for its occurrence this week."""
    stmt = (
        select(
            ScheduleSlot.id,
            ScheduleSlot.day,
            ScheduleSlot.start_time,
            ScheduleSlot.capacity,
            Activity.name,
            Activity.description,
            Activity.cost,
            Activity.tier_required,
        )
        .join(Activity, ScheduleSlot.activity_id == Activity.id)
        .order_by(_DAY_ORDER, ScheduleSlot.start_time)
    )
    if search:
        stmt = stmt.where(Activity.name.icontains(search, autoescape=True))

    with get_session() as s:
        slots = s.execute(stmt).all()
        counts = s.execute(
            select(Booking.schedule_id, Booking.booking_date, func.count(Booking.id))
            .where(
                Booking.booking_date.in_(list(week_dates.values())),
                Booking.status == BOOKING_CONFIRMED,
            )
            .group_by(Booking.schedule_id, Booking.booking_date)
        ).all()

    booked = {(sid, d): n for sid, d, n in counts}
    out = []
    for row in slots:
        occurrence = week_dates.get(row.day)
        out.append({
            "id": row.id,
            "day": row.day,
            "start_time": row.start_time.strftime("%H:%M"),
            "capacity": row.capacity,
            "name": row.name,
            "description": row.description,
            "cost": row.cost,
            "tier_required": row.tier_required,
            "booking_date": occurrence.isoformat() if occurrence else None,
            "booked_count": booked.get((row.id, occurrence), 0),
        })
    return out


def user_bookings(user_id: int) -> List[Dict]:
    """A member's bookings, newest occurrence first."""
    with get_session() as s:
        rows = s.execute(
            select(
                Booking.id,
                Activity.name,
                ScheduleSlot.day,
                ScheduleSlot.start_time,
                Booking.booking_date,
                Booking.status,
            )
            .join(ScheduleSlot, Booking.schedule_id == ScheduleSlot.id)
            .join(Activity, ScheduleSlot.activity_id == Activity.id)
            .where(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), ScheduleSlot.start_time)
        ).all()
    return [
        {
            "id": r.id,
            "name": r.name,
            "day": r.day,
            "start_time": r.start_time.strftime("%H:%M"),
            "booking_date": r.booking_date.isoformat(),
            "status": r.status,
        }
        for r in rows
    ]


def social_feed() -> List[Dict]:
    """Confirmed bookings across all members for the community page."""
    with get_session() as s:
        rows = s.execute(
            select(
                User.username,
                Activity.name,
                Booking.booking_date,
                ScheduleSlot.start_time,
                ScheduleSlot.day,
            )
            .join(User, Booking.user_id == User.id)
            .join(ScheduleSlot, Booking.schedule_id == ScheduleSlot.id)
            .join(Activity, ScheduleSlot.activity_id == Activity.id)
            .where(Booking.status == BOOKING_CONFIRMED)
            .order_by(Booking.booking_date.desc(), ScheduleSlot.start_time)
        ).all()
    return [
        {
            "username": r.username,
            "activity_name": r.name,
            "booking_date": r.booking_date.isoformat(),
            "start_time": r.start_time.strftime("%H:%M"),
            "day": r.day,
        }
        for r in rows
    ]


def user_routines(user_id: int) -> List[Dict]:
    """A member's routines with their exercises in order, newest routine first."""
    with get_session() as s:
        routines = s.execute(
            select(Routine)
            .where(Routine.user_id == user_id)
            .order_by(Routine.created_at.desc(), Routine.id.desc())
        ).scalars().all()
        if not routines:
            return []
        exercises = s.execute(
            select(RoutineExercise)
            .where(RoutineExercise.routine_id.in_([r.id for r in routines]))
            .order_by(RoutineExercise.routine_id, RoutineExercise.order_index)
        ).scalars().all()

    by_routine: Dict[int, List[Dict]] = {}
    for ex in exercises:
        by_routine.setdefault(ex.routine_id, []).append({
            "exercise_id": ex.exercise_id,
            "exercise_name": ex.exercise_name,
            "sets": ex.sets,
            "reps": ex.reps,
            "order_index": ex.order_index,
        })
    return [
        {
            "routine_id": r.id,
            "routine_name": r.routine_name,
            "description": r.description,
            "created_at": r.created_at.isoformat() if r.created_at else None,
            "exercises": by_routine.get(r.id, []),
        }
        for r in routines
    ]
