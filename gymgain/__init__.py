"""
__init__.py – Gym&Gain web application
────────────────────────────────────────────────────────────
Initialises the Flask app and registers all feature blueprints.

✅ Includes:
 • router          → schedule, about, social, dashboard, health
 • schedule_router → class booking + cancellation
 • users_router    → register / login / logout
 • routines_router → workout routine builder (wger search)
────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .db import configure_engine, init_db

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Flask App Factory
# ─────────────────────────────────────────────────────────────
def create_app(overrides: dict | None = None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        SESSION_COOKIE_NAME=config.SESSION_COOKIE_NAME,
        SESSION_COOKIE_HTTPONLY=True,
        PERMANENT_SESSION_LIFETIME=timedelta(hours=config.SESSION_LIFETIME_HOURS),
        DATABASE_URL=config.DATABASE_URL,
    )
    if overrides:
        app.config.update(overrides)

    # ── Configure logging ───────────────────────────────
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # ── Database ────────────────────────────────────────
    configure_engine(app.config["DATABASE_URL"])
    try:
        init_db()
    except SQLAlchemyError:
        log.exception("[DB] Failed to initialise")
        raise
    log.info("[DB] Tables created / verified")

    # ── Register Blueprints ─────────────────────────────
    from .router import router_bp
    from .schedule_router import bp as schedule_bp
    from .users_router import bp as users_bp
    from .routines_router import bp as routines_bp

    app.register_blueprint(router_bp)
    app.register_blueprint(schedule_bp, url_prefix="/schedule")
    app.register_blueprint(users_bp, url_prefix="/users")
    app.register_blueprint(routines_bp, url_prefix="/routines")

    return app
