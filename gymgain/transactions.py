# gymgain/transactions.py
"""
transactions.py
────────────────────────────────────────────
Runs an ordered list of steps against one session in one transaction.

 - every step receives the same SQLAlchemy Session
 - all steps succeed → commit, return each step's result in order
 - any step (or the commit) fails → rollback, one error raised
 - the session is closed exactly once on every exit path

No nesting and no retries: a failed write is reported and the member resubmits.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import db
from .errors import BookingError, TransientStoreError

log = logging.getLogger(__name__)

Step = Callable[[Session], Any]


class TransactionCoordinator:
    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        *,
        label: str = "TX",
        failure_message: Optional[str] = None,
    ):
        self._session_factory = session_factory
        self.label = label
        self.failure_message = failure_message

    def _open(self) -> Session:
        factory = self._session_factory or db.SessionLocal
        return factory()

    def run(self, steps: Sequence[Step]) -> List[Any]:
        try:
            session = self._open()
        except SQLAlchemyError as e:
            log.error(f"[{self.label}] Could not open session: {e}")
            raise TransientStoreError(self.failure_message) from e

        try:
            results = []
            for step in steps:
                results.append(step(session))
            session.commit()
            return results
        except BookingError as e:
            self._rollback(session)
            log.info(f"[{self.label}] Rolled back ({e.reason}): {e.message}")
            raise
        except SQLAlchemyError as e:
            self._rollback(session)
            log.error(f"[{self.label}] Store error, rolled back: {e}")
            raise TransientStoreError(self.failure_message) from e
        except Exception:
            self._rollback(session)
            log.exception(f"[{self.label}] Unexpected error, rolled back")
            raise
        finally:
            session.close()

    def _rollback(self, session: Session) -> None:
        try:
            session.rollback()
        except SQLAlchemyError:
            # The connection is gone; the server discards the open transaction with it.
            log.exception(f"[{self.label}] Rollback failed")
