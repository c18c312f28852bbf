# gymgain/member.py
"""
member.py
────────────────────────────────────────────
Request-scoped identity of the logged-in member.

The booking engine never reads or writes the Flask session itself: routes
load a MemberContext, pass it in, and store the updated copy the engine hands
back.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from functools import wraps
from typing import Optional

from flask import redirect, session, url_for

from .policy import tier_ordinal

log = logging.getLogger(__name__)

SESSION_KEY = "user"


@dataclass(frozen=True)
class MemberContext:
    id: int
    username: str
    token_balance: int
    membership_tier: str = "base"
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    membership_type: Optional[str] = None

    @property
    def tier_ordinal(self) -> int:
        return tier_ordinal(self.membership_tier)

    def with_balance(self, token_balance: int) -> "MemberContext":
        return replace(self, token_balance=token_balance)

    def refreshed(self, token_balance: int, membership_tier: str) -> "MemberContext":
        return replace(self, token_balance=token_balance, membership_tier=membership_tier)

    @classmethod
    def from_user(cls, user) -> "MemberContext":
        return cls(
            id=user.id,
            username=user.username,
            token_balance=user.token_balance,
            membership_tier=user.membership_tier,
            firstname=user.firstname,
            lastname=user.lastname,
            email=user.email,
            membership_type=user.membership_type,
        )

    @classmethod
    def from_dict(cls, data: dict) -> Optional["MemberContext"]:
        try:
            return cls(
                id=int(data["id"]),
                username=data.get("username") or "",
                token_balance=int(data.get("token_balance") or 0),
                membership_tier=data.get("membership_tier") or "base",
                firstname=data.get("firstname"),
                lastname=data.get("lastname"),
                email=data.get("email"),
                membership_type=data.get("membership_type"),
            )
        except (KeyError, TypeError, ValueError):
            log.warning(f"[AUTH] Discarding malformed session user: {data!r}")
            return None

    def to_dict(self) -> dict:
        return asdict(self)


# ── Flask session glue ───────────────────────────────
def current_member() -> Optional[MemberContext]:
    data = session.get(SESSION_KEY)
    if not isinstance(data, dict):
        return None
    return MemberContext.from_dict(data)


def remember_member(member: MemberContext) -> None:
    session[SESSION_KEY] = member.to_dict()
    session.permanent = True


def forget_member() -> None:
    session.clear()


def login_required(view):
    """Redirect to the login page unless a member is in the session."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        member = current_member()
        if member is None:
            log.info("[AUTH] No session user, redirecting to login")
            return redirect(url_for("users.login"))
        return view(member, *args, **kwargs)

    return wrapped
