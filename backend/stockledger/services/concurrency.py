# Overview: Transaction helpers shared by the ledger services (row locks, conflict retry).

from __future__ import annotations

import logging
import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Read rows with SELECT ... FOR UPDATE.

    PostgreSQL and MySQL block competing writers on the row. SQLite has no
    row locks; Product.version_id makes the losing writer fail with
    StaleDataError instead, and run_with_retry replays its operation.
    """
    return query.with_for_update()


def _backoff(attempt: int, base: float) -> float:
    return base * (2 ** attempt)


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Run one transactional unit of work, replaying it on write conflicts.

    `func` must do its own reads, so a replay starts from fresh rows. Only
    RETRYABLE_ERRORS trigger a replay; anything else (business rules
    included) rolls the session back and propagates unchanged.
    Defaults come from RETRY_ATTEMPTS and RETRY_BACKOFF_SECONDS.
    """
    cfg = current_app.config
    attempts = max(attempts if attempts is not None else cfg.get("RETRY_ATTEMPTS", 3), 1)
    base = backoff_base if backoff_base is not None else cfg.get("RETRY_BACKOFF_SECONDS", 0.1)

    attempt = 0
    while True:
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            attempt += 1
            if attempt >= attempts:
                logger.error("Write conflict persisted after %d attempts: %s", attempts, exc)
                raise
            logger.warning(
                "Write conflict (%s), retry %d of %d",
                exc.__class__.__name__,
                attempt,
                attempts - 1,
            )
            time.sleep(_backoff(attempt - 1, base))
        except Exception:
            db.session.rollback()
            raise
