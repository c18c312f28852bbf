"""
routines_router.py
────────────────────────────────────────────
Workout routine builder.

 • GET  /routines/                 → member's routines with exercises
 • GET  /routines/json             → same, as JSON
 • GET  /routines/new?query=       → builder page + wger search results
 • POST /routines/search           → keep name/description, search
 • POST /routines/add-exercise     → append to draft
 • POST /routines/remove-exercise  → drop from draft by index
 • GET  /routines/cancel-creation  → discard draft
 • POST /routines/                 → save draft (routine + exercises, one transaction)
 • POST /routines/delete           → delete owned routine
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from flask import Blueprint, flash, jsonify, redirect, render_template, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError

from . import queries, routines
from .errors import BookingError
from .member import login_required
from .utils import search_exercises

bp = Blueprint("routines", __name__)
log = logging.getLogger(__name__)

DRAFT_KEY = "temp_routine"


def _draft() -> dict:
    return session.get(DRAFT_KEY) or routines.empty_draft()


def _store_draft(draft: dict) -> None:
    session[DRAFT_KEY] = draft
    session.modified = True


def _builder_url(query: str | None):
    query = (query or "").strip()
    return url_for("routines.new", query=query) if query else url_for("routines.new")


@bp.route("/", methods=["GET"])
@login_required
def index(member):
    try:
        items = queries.user_routines(member.id)
    except SQLAlchemyError:
        log.exception("[ROUTINES] Error fetching routines")
        return "Error loading routines", 500
    return render_template("routines.html", title="My Routines", user=member, routines=items)


@bp.route("/json", methods=["GET"])
@login_required
def as_json(member):
    try:
        items = queries.user_routines(member.id)
    except SQLAlchemyError:
        log.exception("[ROUTINES] Error fetching routines")
        return jsonify({"error": "Error loading routines"}), 500
    return jsonify({"success": True, "count": len(items), "routines": items})


@bp.route("/new", methods=["GET"])
@login_required
def new(member):
    draft = _draft()
    _store_draft(draft)
    query = (request.args.get("query") or "").strip()
    results = search_exercises(query) if query else []
    return render_template(
        "create.html",
        title="New Routine",
        user=member,
        temp_routine=draft,
        search_results=results,
        current_query=query,
    )


@bp.route("/search", methods=["POST"])
@login_required
def search(member):
    draft = _draft()
    draft["routine_name"] = (request.form.get("routine_name") or "").strip()
    draft["description"] = (request.form.get("description") or "").strip()
    _store_draft(draft)
    return redirect(_builder_url(request.form.get("query")))


@bp.route("/add-exercise", methods=["POST"])
@login_required
def add_exercise(member):
    draft = routines.add_to_draft(
        _draft(),
        request.form.get("exercise_id"),
        request.form.get("exercise_name"),
        request.form.get("sets"),
        request.form.get("reps"),
    )
    _store_draft(draft)
    return redirect(_builder_url(request.form.get("query")))


@bp.route("/remove-exercise", methods=["POST"])
@login_required
def remove_exercise(member):
    draft = routines.remove_from_draft(_draft(), request.form.get("index"))
    _store_draft(draft)
    return redirect(_builder_url(request.form.get("query")))


@bp.route("/cancel-creation", methods=["GET"])
@login_required
def cancel_creation(member):
    session.pop(DRAFT_KEY, None)
    return redirect(url_for("routines.index"))


@bp.route("/", methods=["POST"])
@login_required
def save(member):
    draft = _draft()
    name = request.form.get("routine_name") or draft.get("routine_name")
    description = request.form.get("description") or draft.get("description")
    try:
        routines.save_routine(member.id, name, description, draft.get("exercises") or [])
    except BookingError as e:
        flash(e.message, "error")
        return redirect(url_for("routines.new"))

    session.pop(DRAFT_KEY, None)
    flash("Routine saved!", "success")
    return redirect(url_for("routines.index"))


@bp.route("/delete", methods=["POST"])
@login_required
def delete(member):
    routine_id = request.form.get("routine_id")
    if not routine_id:
        return redirect(url_for("routines.index"))
    try:
        routines.delete_routine(member.id, routine_id)
    except BookingError as e:
        flash(e.message, "error")
    return redirect(url_for("routines.index"))
