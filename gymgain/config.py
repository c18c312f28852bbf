# gymgain/config.py
import os, logging

# ── Helpers ───────────────────────────────────────────────────────────────────
def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        logging.getLogger(__name__).warning(f"[CONFIG] {name}={raw!r} is not an integer, using {default}")
        return default

# ── Flask / session cookie ───────────────────────────────────────────────────
SECRET_KEY             = os.environ.get("SECRET_KEY", "dev-secret-change-me")
SESSION_COOKIE_NAME    = os.environ.get("SESSION_COOKIE_NAME", "gym_session_cookie")
SESSION_LIFETIME_HOURS = _int_env("SESSION_LIFETIME_HOURS", 24)

# ── Database ─────────────────────────────────────────────────────────────────
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///gymgain.db")

# Seconds to wait for a pooled connection, and per-statement ceiling.
DB_POOL_TIMEOUT         = _int_env("DB_POOL_TIMEOUT", 10)
DB_STATEMENT_TIMEOUT_MS = _int_env("DB_STATEMENT_TIMEOUT_MS", 5000)

# ── Membership ───────────────────────────────────────────────────────────────
STARTING_TOKENS = _int_env("STARTING_TOKENS", 10)
DEFAULT_TIER    = os.environ.get("DEFAULT_TIER", "base")

# ── wger exercise search ─────────────────────────────────────────────────────
WGER_API_URL  = os.environ.get("WGER_API_URL", "https://wger.de/api/v2").rstrip("/")
WGER_LANGUAGE = os.environ.get("WGER_LANGUAGE", "2")  # 2 = English
HTTP_TIMEOUT  = _int_env("HTTP_TIMEOUT", 10)

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
