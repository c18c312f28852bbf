# gymgain/utils.py
from __future__ import annotations

import logging
from datetime import date, timedelta

import requests
from flask import flash, redirect, request, url_for

from . import config

log = logging.getLogger(__name__)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


# ── Calendar helpers ─────────────────────────────────
def next_week_dates(today: date | None = None) -> dict[str, date]:
    """
    Map each weekday name to its next occurrence strictly after `today`
    (today's own weekday maps to the same day next week).
    """
    base = today or date.today()
    out = {}
    for idx, name in enumerate(DAY_NAMES):
        days_until = (idx - base.weekday()) % 7 or 7
        out[name] = base + timedelta(days=days_until)
    return out


# ── Flash + redirect ─────────────────────────────────
def flash_and_redirect(category: str, message: str, target: str | None = None):
    """Store a one-shot message for the next page and redirect."""
    flash(message, category)
    return redirect(target or url_for("router.index"))


def back_or(endpoint: str) -> str:
    """Referring page when it is on this site, else the given endpoint."""
    ref = request.referrer
    if ref and ref.startswith(request.host_url):
        return ref
    return url_for(endpoint)


# ── wger exercise search ─────────────────────────────
def search_exercises(term: str) -> list[dict]:
    """
    Query the wger exercise search endpoint.
    Returns [{"id", "name", "category"}]; network/API failures yield [].
    """
    term = (term or "").strip()
    if not term:
        return []

    url = f"{config.WGER_API_URL}/exercise/search/"
    try:
        resp = requests.get(
            url,
            params={"term": term, "language": config.WGER_LANGUAGE},
            timeout=config.HTTP_TIMEOUT,
        )
        if not resp.ok:
            log.warning(f"[WGER] search {term!r} returned {resp.status_code}")
            return []
        suggestions = resp.json().get("suggestions") or []
    except (requests.RequestException, ValueError) as e:
        log.error(f"[WGER] search {term!r} failed: {e}")
        return []

    results = []
    for s in suggestions:
        data = s.get("data") or {}
        results.append({
            "id": data.get("base_id") or data.get("id") or 0,
            "name": data.get("name") or s.get("value") or "",
            "category": data.get("category") or "",
        })
    log.info(f"[WGER] search {term!r} → {len(results)} results")
    return results
