# gymgain/seed_db.py
"""
Seed convenience: inserts the activity catalogue, a weekly timetable and two
demo members (password "password").
Usage:
  DATABASE_URL=... python -m gymgain.seed_db
"""
from datetime import time

from sqlalchemy import select
from werkzeug.security import generate_password_hash

from .db import configure_engine, get_session, init_db
from .models import Activity, ScheduleSlot, User

ACTIVITIES = [
    # name, description, cost, tier_required
    ("Yoga", "Gentle flow for all levels", 2, 1),
    ("Spin", "High-energy indoor cycling", 3, 1),
    ("HIIT", "Interval circuit, bring water", 4, 2),
    ("Pilates Reformer", "Small-group reformer session", 5, 2),
    ("Personal Training", "One-to-one coaching", 8, 3),
]

TIMETABLE = [
    # activity, day, start, capacity
    ("Yoga", "Monday", time(7, 0), 15),
    ("Spin", "Monday", time(18, 0), 12),
    ("HIIT", "Tuesday", time(6, 30), 10),
    ("Pilates Reformer", "Wednesday", time(9, 0), 6),
    ("Yoga", "Thursday", time(19, 0), 15),
    ("Personal Training", "Friday", time(12, 0), 1),
    ("Spin", "Saturday", time(10, 0), 12),
    ("Pilates Reformer", "Sunday", time(11, 0), 6),
]

MEMBERS = [
    # username, email, tokens, tier
    ("demo_base", "base@example.com", 10, "base"),
    ("demo_gold", "gold@example.com", 40, "gold"),
]


def seed_activities():
    with get_session() as s:
        existing = {a.name: a for a in s.execute(select(Activity)).scalars()}
        for name, desc, cost, tier in ACTIVITIES:
            if name not in existing:
                s.add(Activity(name=name, description=desc, cost=cost, tier_required=tier))


def seed_timetable():
    with get_session() as s:
        ids = {a.name: a.id for a in s.execute(select(Activity)).scalars()}
        have = {(sl.activity_id, sl.day, sl.start_time) for sl in s.execute(select(ScheduleSlot)).scalars()}
        for name, day, start, cap in TIMETABLE:
            key = (ids[name], day, start)
            if key not in have:
                s.add(ScheduleSlot(activity_id=ids[name], day=day, start_time=start, capacity=cap))


def seed_members():
    with get_session() as s:
        for username, email, tokens, tier in MEMBERS:
            found = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if found:
                continue
            s.add(User(
                username=username,
                email=email,
                password_hash=generate_password_hash("password"),
                token_balance=tokens,
                membership_tier=tier,
                membership_type="monthly",
            ))


if __name__ == "__main__":
    configure_engine()
    init_db()
    seed_activities()
    seed_timetable()
    seed_members()
    print("✅ Seed complete.")
