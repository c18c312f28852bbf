# gymgain/models.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    Time,
    ForeignKey,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base

BOOKING_CONFIRMED = "confirmed"

# Largest value an INTEGER column accepts.
MAX_ID = 2**31 - 1


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    firstname = Column(String(50), nullable=True)
    lastname = Column(String(50), nullable=True)
    email = Column(String(120), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    token_balance = Column(Integer, nullable=False, default=0)
    membership_type = Column(String(32), nullable=True)
    membership_tier = Column(String(16), nullable=False, default="base")  # base | silver | gold
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="user")
    routines = relationship("Routine", back_populates="user")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    cost = Column(Integer, nullable=False, default=1)
    tier_required = Column(Integer, nullable=False, default=1)  # 1=base 2=silver 3=gold

    slots = relationship("ScheduleSlot", back_populates="activity")


class ScheduleSlot(Base):
    __tablename__ = "schedule"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False)
    day = Column(String(10), nullable=False)  # Monday … Sunday
    start_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False, default=10)

    activity = relationship("Activity", back_populates="slots")
    bookings = relationship("Booking", back_populates="slot")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("user_id", "schedule_id", "booking_date", name="uq_booking_user_slot_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey("schedule.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default=BOOKING_CONFIRMED)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="bookings")
    slot = relationship("ScheduleSlot", back_populates="bookings")


class Routine(Base):
    __tablename__ = "routines"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    routine_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="routines")
    exercises = relationship(
        "RoutineExercise",
        back_populates="routine",
        order_by="RoutineExercise.order_index",
        cascade="all, delete-orphan",
    )


class RoutineExercise(Base):
    __tablename__ = "routine_exercises"

    id = Column(Integer, primary_key=True, index=True)
    routine_id = Column(Integer, ForeignKey("routines.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, nullable=False, default=0)
    exercise_name = Column(String(150), nullable=False)
    sets = Column(Integer, nullable=False, default=3)
    reps = Column(Integer, nullable=False, default=10)
    order_index = Column(Integer, nullable=False, default=0)

    routine = relationship("Routine", back_populates="exercises")
