# tests/conftest.py
"""
Shared fixtures: a Flask app on a throwaway SQLite file database plus small
factories for members, activities and timetable slots.
"""

from datetime import date, time

import pytest
from werkzeug.security import generate_password_hash

from gymgain import create_app, db
from gymgain.db import get_session
from gymgain.member import SESSION_KEY, MemberContext
from gymgain.models import Activity, Booking, ScheduleSlot, User

OCCURRENCE = date(2030, 1, 7)  # a Monday


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'gymgain-test.db'}",
    })
    yield app
    db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(token_balance=10, membership_tier="base", password="secret", **extra):
        counter["n"] += 1
        n = counter["n"]
        with get_session() as s:
            user = User(
                username=extra.pop("username", f"member{n}"),
                email=extra.pop("email", f"member{n}@example.com"),
                password_hash=generate_password_hash(password),
                token_balance=token_balance,
                membership_tier=membership_tier,
                **extra,
            )
            s.add(user)
            s.flush()
            return MemberContext.from_user(user)

    return _make


@pytest.fixture
def make_slot(app):
    def _make(cost=2, tier_required=1, capacity=10, name="Yoga", day="Monday", start=time(7, 0)):
        with get_session() as s:
            activity = Activity(name=name, description=f"{name} class", cost=cost, tier_required=tier_required)
            s.add(activity)
            s.flush()
            slot = ScheduleSlot(activity_id=activity.id, day=day, start_time=start, capacity=capacity)
            s.add(slot)
            s.flush()
            return slot.id

    return _make


@pytest.fixture
def login(client):
    def _login(member: MemberContext):
        with client.session_transaction() as sess:
            sess[SESSION_KEY] = member.to_dict()
        return member

    return _login


# ── Direct DB reads for assertions ───────────────────
def balance_of(user_id: int) -> int:
    with get_session() as s:
        return s.get(User, user_id).token_balance


def confirmed_count(schedule_id: int, on: date = OCCURRENCE) -> int:
    with get_session() as s:
        return s.query(Booking).filter(
            Booking.schedule_id == schedule_id,
            Booking.booking_date == on,
            Booking.status == "confirmed",
        ).count()


def bookings_of(user_id: int) -> list:
    with get_session() as s:
        return [b.id for b in s.query(Booking).filter(Booking.user_id == user_id).all()]


def flashes(client) -> list:
    with client.session_transaction() as sess:
        return list(sess.get("_flashes", []))
