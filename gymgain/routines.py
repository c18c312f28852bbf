# gymgain/routines.py
"""
routines.py
────────────────────────────────────────────
Workout routines: a named, ordered list of exercises owned by one member.

Saving inserts the routine, then its exercises, in one transaction; a failed
exercise insert leaves no orphan routine behind. The routine being built lives
in the Flask session as a draft until it is saved.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Dict, List, Optional

from sqlalchemy import delete, insert
from sqlalchemy.orm import Session

from .errors import ValidationError
from .models import MAX_ID, Routine, RoutineExercise
from .transactions import TransactionCoordinator

log = logging.getLogger(__name__)

DEFAULT_SETS = 3
DEFAULT_REPS = 10

_routines = Routine.__table__
_exercises = RoutineExercise.__table__


def _to_int(value, default: int) -> int:
    """Non-numeric or out-of-column-range values fall back to default."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if 0 <= number <= MAX_ID else default


# ── Draft (session-held) ─────────────────────────────
def empty_draft() -> Dict:
    return {"routine_name": "", "description": "", "exercises": []}


def add_to_draft(draft: Dict, exercise_id, exercise_name: str, sets=None, reps=None) -> Dict:
    name = (exercise_name or "").strip()
    if not name:
        return draft
    draft.setdefault("exercises", []).append({
        "exercise_id": _to_int(exercise_id, 0),
        "exercise_name": name,
        "sets": _to_int(sets, DEFAULT_SETS) or DEFAULT_SETS,
        "reps": _to_int(reps, DEFAULT_REPS) or DEFAULT_REPS,
    })
    return draft


def remove_from_draft(draft: Dict, index) -> Dict:
    exercises = draft.get("exercises") or []
    idx = _to_int(index, -1)
    if 0 <= idx < len(exercises):
        exercises.pop(idx)
    return draft


# ── Persistence ──────────────────────────────────────
def _insert_routine(user_id: int, name: str, description: Optional[str], s: Session) -> int:
    result = s.execute(
        insert(_routines).values(user_id=user_id, routine_name=name, description=description)
    )
    return result.inserted_primary_key[0]


def _insert_exercises(exercises: List[Dict], routine_ids: List[int], s: Session) -> int:
    if not exercises:
        return 0
    routine_id = routine_ids[0]
    s.execute(
        insert(_exercises),
        [
            {
                "routine_id": routine_id,
                "exercise_id": _to_int(ex.get("exercise_id"), 0),
                "exercise_name": ex["exercise_name"],
                "sets": _to_int(ex.get("sets"), DEFAULT_SETS),
                "reps": _to_int(ex.get("reps"), DEFAULT_REPS),
                "order_index": idx,
            }
            for idx, ex in enumerate(exercises)
        ],
    )
    return len(exercises)


def save_routine(user_id: int, name: str, description: Optional[str], exercises: List[Dict], session_factory=None) -> int:
    """Insert routine + exercises atomically. Returns the new routine id."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please give your routine a name.", "missing routine name")

    routine_ids: List[int] = []

    def insert_parent(s: Session) -> int:
        routine_ids.append(_insert_routine(user_id, name, (description or "").strip() or None, s))
        return routine_ids[0]

    TransactionCoordinator(
        session_factory,
        label="ROUTINES",
        failure_message="Error saving routine.",
    ).run([
        insert_parent,
        partial(_insert_exercises, exercises, routine_ids),
    ])
    log.info(f"[ROUTINES] Saved routine {routine_ids[0]} ({len(exercises)} exercises) for user {user_id}")
    return routine_ids[0]


def delete_routine(user_id: int, routine_id, session_factory=None) -> bool:
    """Delete an owned routine and its exercises. False when nothing matched."""
    rid = _to_int(routine_id, 0)
    if rid <= 0:
        raise ValidationError("Invalid routine selected.", "invalid routine")

    def delete_children(s: Session) -> int:
        owned = _routines.select().where(_routines.c.id == rid, _routines.c.user_id == user_id)
        if s.execute(owned).first() is None:
            return 0
        return s.execute(delete(_exercises).where(_exercises.c.routine_id == rid)).rowcount

    def delete_parent(s: Session) -> int:
        return s.execute(
            delete(_routines).where(_routines.c.id == rid, _routines.c.user_id == user_id)
        ).rowcount

    _, deleted = TransactionCoordinator(
        session_factory,
        label="ROUTINES",
        failure_message="Error deleting routine.",
    ).run([delete_children, delete_parent])
    log.info(f"[ROUTINES] Routine {rid} deleted={bool(deleted)} for user {user_id}")
    return bool(deleted)
