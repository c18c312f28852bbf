# tests/test_routines.py
from unittest.mock import MagicMock

import pytest
import requests
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from gymgain import routines, utils
from gymgain.db import get_session
from gymgain.errors import TransientStoreError, ValidationError
from gymgain.models import Routine, RoutineExercise
from gymgain.routines_router import DRAFT_KEY

from conftest import flashes

SQUAT = {"exercise_id": 111, "exercise_name": "Squat", "sets": 5, "reps": 5}
ROW = {"exercise_id": 222, "exercise_name": "Barbell Row", "sets": 3, "reps": 8}


def _count(model):
    with get_session() as s:
        return s.execute(select(func.count()).select_from(model)).scalar_one()


def _wger_response(status=200, payload=None):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.json.return_value = payload or {}
    return resp


# ── wger search ──────────────────────────────────────
def test_search_exercises_maps_suggestions(monkeypatch):
    payload = {"suggestions": [
        {"value": "Squat", "data": {"id": 9, "base_id": 111, "name": "Squat", "category": "Legs"}},
        {"value": "Front Squat", "data": {"id": 10, "name": "Front Squat", "category": "Legs"}},
    ]}
    get = MagicMock(return_value=_wger_response(payload=payload))
    monkeypatch.setattr(utils.requests, "get", get)

    results = utils.search_exercises("squat")

    assert results == [
        {"id": 111, "name": "Squat", "category": "Legs"},
        {"id": 10, "name": "Front Squat", "category": "Legs"},
    ]
    _, kwargs = get.call_args
    assert kwargs["params"]["term"] == "squat"
    assert kwargs["timeout"] > 0


def test_search_exercises_swallows_network_errors(monkeypatch):
    monkeypatch.setattr(utils.requests, "get", MagicMock(side_effect=requests.ConnectionError("down")))
    assert utils.search_exercises("squat") == []


def test_search_exercises_non_ok_status(monkeypatch):
    monkeypatch.setattr(utils.requests, "get", MagicMock(return_value=_wger_response(status=503)))
    assert utils.search_exercises("squat") == []


def test_search_exercises_blank_term_skips_request(monkeypatch):
    get = MagicMock()
    monkeypatch.setattr(utils.requests, "get", get)
    assert utils.search_exercises("   ") == []
    get.assert_not_called()


# ── Draft helpers ────────────────────────────────────
def test_draft_add_defaults_and_remove():
    draft = routines.empty_draft()
    routines.add_to_draft(draft, "7", "Deadlift")
    routines.add_to_draft(draft, "8", "Bench", sets="4", reps="abc")
    routines.add_to_draft(draft, "9", "   ")

    assert [e["exercise_name"] for e in draft["exercises"]] == ["Deadlift", "Bench"]
    assert draft["exercises"][0]["sets"] == routines.DEFAULT_SETS
    assert draft["exercises"][1] == {"exercise_id": 8, "exercise_name": "Bench", "sets": 4, "reps": routines.DEFAULT_REPS}

    routines.remove_from_draft(draft, "5")
    routines.remove_from_draft(draft, "0")
    assert [e["exercise_name"] for e in draft["exercises"]] == ["Bench"]


# ── Persistence ──────────────────────────────────────
def test_save_routine_keeps_exercise_order(app, make_user):
    member = make_user()
    rid = routines.save_routine(member.id, "Push Pull", "twice a week", [SQUAT, ROW])

    with get_session() as s:
        saved = s.execute(
            select(RoutineExercise).where(RoutineExercise.routine_id == rid).order_by(RoutineExercise.order_index)
        ).scalars().all()
        assert [(e.exercise_name, e.order_index) for e in saved] == [("Squat", 0), ("Barbell Row", 1)]


def test_save_routine_requires_name(app, make_user):
    with pytest.raises(ValidationError):
        routines.save_routine(make_user().id, "  ", None, [SQUAT])
    assert _count(Routine) == 0


def test_failed_exercise_insert_leaves_no_routine(app, make_user, monkeypatch):
    def boom(exercises, routine_ids, s):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(routines, "_insert_exercises", boom)

    with pytest.raises(TransientStoreError) as exc:
        routines.save_routine(make_user().id, "Legs", None, [SQUAT])

    assert exc.value.message == "Error saving routine."
    assert _count(Routine) == 0
    assert _count(RoutineExercise) == 0


def test_delete_routine_only_for_owner(app, make_user):
    owner, stranger = make_user(), make_user()
    rid = routines.save_routine(owner.id, "Legs", None, [SQUAT])

    assert routines.delete_routine(stranger.id, rid) is False
    assert _count(Routine) == 1

    assert routines.delete_routine(owner.id, rid) is True
    assert _count(Routine) == 0
    assert _count(RoutineExercise) == 0


@pytest.mark.parametrize("bad_id", ["abc", "0", "-3", "99999999999999999999"])
def test_delete_routine_rejects_bad_id(app, make_user, bad_id):
    with pytest.raises(ValidationError):
        routines.delete_routine(make_user().id, bad_id)


def test_oversized_numbers_in_draft_fall_back_to_defaults():
    draft = routines.add_to_draft(routines.empty_draft(), "99999999999999999999", "Lunge", sets="1e3", reps=str(2**40))
    assert draft["exercises"] == [
        {"exercise_id": 0, "exercise_name": "Lunge", "sets": routines.DEFAULT_SETS, "reps": routines.DEFAULT_REPS}
    ]


# ── Routes ───────────────────────────────────────────
def test_routines_require_login(client):
    resp = client.get("/routines/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/users/login")


def test_builder_flow_saves_routine(client, login, make_user, monkeypatch):
    login(make_user())
    payload = {"suggestions": [{"value": "Squat", "data": {"base_id": 111, "name": "Squat", "category": "Legs"}}]}
    monkeypatch.setattr(utils.requests, "get", MagicMock(return_value=_wger_response(payload=payload)))

    resp = client.post("/routines/search", data={"routine_name": "Leg Day", "description": "", "query": "squat"})
    assert resp.headers["Location"].endswith("/routines/new?query=squat")

    page = client.get("/routines/new?query=squat")
    assert page.status_code == 200
    assert b"Squat" in page.data

    client.post("/routines/add-exercise", data={
        "exercise_id": "111", "exercise_name": "Squat", "sets": "5", "reps": "5", "query": "squat",
    })
    with client.session_transaction() as sess:
        assert sess[DRAFT_KEY]["routine_name"] == "Leg Day"
        assert len(sess[DRAFT_KEY]["exercises"]) == 1

    resp = client.post("/routines/", data={})
    assert resp.headers["Location"].endswith("/routines/")
    assert flashes(client) == [("success", "Routine saved!")]
    with client.session_transaction() as sess:
        assert DRAFT_KEY not in sess

    data = client.get("/routines/json").get_json()
    assert data["success"] is True
    assert data["count"] == 1
    (routine,) = data["routines"]
    assert routine["routine_name"] == "Leg Day"
    assert routine["exercises"][0]["exercise_name"] == "Squat"
    assert routine["exercises"][0]["sets"] == 5

    listing = client.get("/routines/")
    assert b"Leg Day" in listing.data


def test_save_without_name_returns_to_builder(client, login, make_user):
    login(make_user())
    resp = client.post("/routines/", data={"routine_name": ""})
    assert resp.headers["Location"].endswith("/routines/new")
    assert flashes(client) == [("error", "Please give your routine a name.")]


def test_cancel_creation_drops_draft(client, login, make_user):
    login(make_user())
    client.post("/routines/add-exercise", data={"exercise_id": "1", "exercise_name": "Plank"})
    resp = client.get("/routines/cancel-creation")
    assert resp.headers["Location"].endswith("/routines/")
    with client.session_transaction() as sess:
        assert DRAFT_KEY not in sess


def test_delete_route_ignores_foreign_routine(client, login, make_user):
    owner = make_user()
    rid = routines.save_routine(owner.id, "Mine", None, [SQUAT])
    login(make_user())

    client.post("/routines/delete", data={"routine_id": rid})

    assert _count(Routine) == 1


def test_delete_route_with_oversized_id_flashes(client, login, make_user):
    login(make_user())
    resp = client.post("/routines/delete", data={"routine_id": "99999999999999999999"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/routines/")
    assert flashes(client) == [("error", "Invalid routine selected.")]
