# gymgain/db.py
from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base

from . import config

log = logging.getLogger(__name__)

engine = None

SessionLocal = sessionmaker(
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


def _engine_options(url: str, pool_timeout: int, statement_timeout_ms: int) -> dict:
    """Per-dialect pool and statement timeouts."""
    backend = make_url(url).get_backend_name()
    options = {"pool_pre_ping": True}

    if backend == "sqlite":
        # SQLite has no statement timeout; `timeout` bounds the wait on a locked database.
        options["connect_args"] = {"timeout": max(1, statement_timeout_ms // 1000), "check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            return options
        options["pool_timeout"] = pool_timeout
        return options

    options["pool_timeout"] = pool_timeout
    if backend == "postgresql":
        options["connect_args"] = {"options": f"-c statement_timeout={statement_timeout_ms}"}
    elif backend == "mysql":
        seconds = max(1, statement_timeout_ms // 1000)
        options["connect_args"] = {"read_timeout": seconds, "write_timeout": seconds}
    return options


def configure_engine(
    url: str | None = None,
    *,
    pool_timeout: int | None = None,
    statement_timeout_ms: int | None = None,
):
    """Create the engine and bind the session factory to it."""
    global engine
    url = url or config.DATABASE_URL
    if engine is not None:
        engine.dispose()
    engine = create_engine(
        url,
        **_engine_options(
            url,
            pool_timeout if pool_timeout is not None else config.DB_POOL_TIMEOUT,
            statement_timeout_ms if statement_timeout_ms is not None else config.DB_STATEMENT_TIMEOUT_MS,
        ),
    )
    SessionLocal.configure(bind=engine)
    log.info(f"[DB] Engine configured for {make_url(url).render_as_string(hide_password=True)}")
    return engine


def init_db():
    """Create all tables (idempotent)."""
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    if engine is None:
        configure_engine()
    Base.metadata.create_all(bind=engine)


# ── Context managers ─────────────────────────────
@contextmanager
def get_session():
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
