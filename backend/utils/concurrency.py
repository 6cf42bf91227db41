# utils/concurrency.py
import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    SQLite ignores SELECT ... FOR UPDATE, PostgreSQL honors it.
    """
    return query.with_for_update()


def run_with_retry(db: Session, func, *, attempts: int = 3, backoff_base: float = 0.05,
                   retry_on=(IntegrityError, OperationalError)):
    """
    Execute a DB operation, retrying when it loses a race.

    The session is rolled back between attempts; the last error is
    re-raised once attempts run out.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.rollback()
            if attempt >= attempts - 1:
                raise
            logger.info("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
