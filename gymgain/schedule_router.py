"""
schedule_router.py
────────────────────────────────────────────────────────────
Class booking endpoints.

 • POST /schedule/book    → schedule_id, booking_date (YYYY-MM-DD)
 • POST /schedule/cancel  → booking_id

Both require a logged-in member. Success flashes and redirects to the
dashboard; rejections flash the reason and redirect back (book) or to the
dashboard (cancel). The updated balance from the engine is written back to
the session only after commit.
────────────────────────────────────────────────────────────
"""

import logging
from flask import Blueprint, request, url_for

from .booking import BookingEngine
from .errors import BookingError
from .member import login_required, remember_member
from .utils import back_or, flash_and_redirect

bp = Blueprint("schedule", __name__)
log = logging.getLogger(__name__)


@bp.route("/book", methods=["POST"])
@login_required
def book(member):
    schedule_id = (request.form.get("schedule_id") or "").strip()
    booking_date = (request.form.get("booking_date") or "").strip()

    try:
        result = BookingEngine().book(member, schedule_id, booking_date)
    except BookingError as e:
        return flash_and_redirect("error", e.message, back_or("router.index"))

    remember_member(result.member)
    return flash_and_redirect("success", "Class booked successfully!", url_for("router.dashboard"))


@bp.route("/cancel", methods=["POST"])
@login_required
def cancel(member):
    booking_id = (request.form.get("booking_id") or "").strip()

    try:
        result = BookingEngine().cancel(member, booking_id)
    except BookingError as e:
        return flash_and_redirect("error", e.message, url_for("router.dashboard"))

    remember_member(result.member)
    return flash_and_redirect(
        "success", "Booking cancelled and tokens refunded.", url_for("router.dashboard")
    )
