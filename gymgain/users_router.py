"""
users_router.py
────────────────────────────────────────────
Registration, login and logout.
Passwords are stored as werkzeug salted hashes, never in clear.
────────────────────────────────────────────
"""

import logging
from flask import Blueprint, redirect, render_template, request, url_for
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from . import config, queries
from .db import get_session
from .member import MemberContext, forget_member, remember_member
from .models import User

bp = Blueprint("users", __name__)
log = logging.getLogger(__name__)


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template("register.html", title="Register")

    username = (request.form.get("username") or "").strip()
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""

    if not username or not email or not password:
        return render_template("register.html", title="Register", error="Please fill in all fields"), 400

    try:
        with get_session() as s:
            s.add(User(
                username=username,
                email=email,
                password_hash=generate_password_hash(password),
                firstname=(request.form.get("firstname") or "").strip() or None,
                lastname=(request.form.get("lastname") or "").strip() or None,
                token_balance=config.STARTING_TOKENS,
                membership_tier=config.DEFAULT_TIER,
            ))
    except IntegrityError:
        log.info(f"[AUTH] Registration rejected, username/email taken: {username} / {email}")
        return render_template("register.html", title="Register", error="Username or email already registered"), 400
    except SQLAlchemyError:
        log.exception("[AUTH] Error registering user")
        return render_template("register.html", title="Register", error="Error registering user"), 500

    log.info(f"[AUTH] Registered {username}")
    return redirect(url_for("users.login"))


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template("login.html", title="Login")

    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""

    try:
        user = queries.get_user_by_email(email)
    except SQLAlchemyError:
        log.exception("[AUTH] Error looking up user")
        return render_template("login.html", title="Login", error="Server error"), 500

    if user is None:
        return render_template("login.html", title="Login", error="No user found with that email"), 401
    if not check_password_hash(user.password_hash, password):
        return render_template("login.html", title="Login", error="Incorrect password"), 401

    remember_member(MemberContext.from_user(user))
    log.info(f"[AUTH] User {user.id} logged in")
    return redirect(url_for("router.dashboard"))


@bp.route("/logout", methods=["GET"])
def logout():
    forget_member()
    return redirect(url_for("users.login"))
