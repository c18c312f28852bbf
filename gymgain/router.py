# gymgain/router.py
import logging
from flask import Blueprint, jsonify, make_response, render_template, request

from sqlalchemy.exc import SQLAlchemyError

from . import queries
from .member import MemberContext, current_member, login_required, remember_member
from .utils import next_week_dates

router_bp = Blueprint("router", __name__)
log = logging.getLogger(__name__)


# ── Weekly schedule ──────────────────────────────────────
@router_bp.route("/", methods=["GET"])
def index():
    search = (request.args.get("search") or "").strip()
    week_dates = next_week_dates()
    try:
        schedule = queries.weekly_schedule(week_dates, search or None)
    except SQLAlchemyError:
        log.exception("[SCHEDULE] Failed to load weekly schedule")
        return "Server Error", 500

    log.info(f"[SCHEDULE] Rendering {len(schedule)} slots (search={search!r})")
    resp = make_response(render_template(
        "index.html",
        title="Gym&Gain - Home",
        user=current_member(),
        schedule=schedule,
        search_query=search,
        week_dates={day: d.isoformat() for day, d in week_dates.items()},
    ))
    # Always fresh: the back button must not show stale seat counts.
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
    return resp


@router_bp.route("/about", methods=["GET"])
def about():
    return render_template("about.html", title="About Us", user=current_member())


# ── Community feed ───────────────────────────────────────
@router_bp.route("/social", methods=["GET"])
@login_required
def social(member):
    try:
        bookings = queries.social_feed()
    except SQLAlchemyError:
        log.exception("[SOCIAL] Error fetching social feed")
        bookings = []
    return render_template("social.html", title="Community Activity", user=member, bookings=bookings)


# ── Dashboard ────────────────────────────────────────────
@router_bp.route("/dashboard", methods=["GET"])
@login_required
def dashboard(member):
    try:
        fresh = queries.get_user(member.id)
    except SQLAlchemyError:
        log.exception("[DASHBOARD] Error fetching fresh user data, using session copy")
        fresh = None

    if fresh is not None:
        member = MemberContext.from_user(fresh)
        remember_member(member)

    error = None
    try:
        bookings = queries.user_bookings(member.id)
    except SQLAlchemyError:
        log.exception("[DASHBOARD] Error fetching bookings")
        bookings, error = [], "Error fetching bookings"

    return render_template("dashboard.html", title="Dashboard", user=member, bookings=bookings, error=error)


# ── Health ───────────────────────────────────────────────
@router_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "service": "Gym&Gain"}), 200
