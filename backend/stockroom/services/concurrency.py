# Overview: Service-layer operations for concurrency; the unit of work that wraps every stock mutation.

"""
Transaction coordinator.

Every create/update/delete of an order or return runs inside exactly one
UnitOfWork: validate -> write header -> write lines -> adjust stock ->
write ledger, then commit. Any exception rolls back every write made so
far; there are no compensating actions and no partial commits.

The UnitOfWork is passed explicitly to every core call. Stock rows are
serialized by the store itself (UPDATE ... RETURNING), never by
application locks.
"""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..exceptions import DuplicateLineItemError, PersistenceError, UnitOfWorkTimeoutError
from ..extensions import db

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Unique constraints on (document, product) for order and return lines
_LINE_CONSTRAINT_RE = re.compile(r"uq_\w+_lines_\w+_product")


class UnitOfWork:
    """Handle on one atomic transaction; threaded through every core call."""

    def __init__(self, session: Session, *, deadline: float | None = None):
        self.session = session
        self.deadline = deadline

    def checkpoint(self) -> None:
        """Abandon the unit of work once its deadline has passed."""
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise UnitOfWorkTimeoutError()

    def flush(self) -> None:
        self.checkpoint()
        self.session.flush()


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _translate_integrity_error(exc: IntegrityError) -> Exception:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    if _LINE_CONSTRAINT_RE.search(text) or "_lines.product_id" in text:
        params = exc.params
        product_id = None
        if isinstance(params, dict):
            product_id = params.get("product_id")
        elif isinstance(params, (list, tuple)) and params and isinstance(params[0], dict):
            product_id = params[0].get("product_id")
        return DuplicateLineItemError(product_id)
    return PersistenceError()


@contextmanager
def unit_of_work(timeout: float | None = None, session: Session | None = None) -> Iterator[UnitOfWork]:
    """
    Open a unit of work, commit on success, roll back on any error.

    Retryable concurrency failures (OperationalError, StaleDataError) are
    re-raised untouched so run_in_unit_of_work can retry them. Other store
    errors become PersistenceError, except duplicate-line violations which
    become DuplicateLineItemError.
    """
    session = session or db.session
    deadline = time.monotonic() + timeout if timeout else None
    uow = UnitOfWork(session, deadline=deadline)
    try:
        yield uow
        uow.checkpoint()
        session.commit()
    except (OperationalError, StaleDataError):
        session.rollback()
        raise
    except IntegrityError as exc:
        session.rollback()
        translated = _translate_integrity_error(exc)
        logger.warning("Unit of work rolled back: %s", type(translated).__name__)
        raise translated from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Unit of work rolled back on store error")
        raise PersistenceError() from exc
    except BaseException as exc:
        session.rollback()
        logger.warning("Unit of work rolled back: %s", type(exc).__name__)
        raise


def run_in_unit_of_work(
    func: Callable[[UnitOfWork], T],
    *,
    timeout: float | None = None,
    attempts: int | None = None,
    backoff_base: float = 0.1,
) -> T:
    """
    Execute func(uow) in a fresh unit of work with retry on concurrency failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Each attempt is fully rolled back
    before the next one starts.

    timeout/attempts default to UNIT_OF_WORK_TIMEOUT_SECONDS and
    UNIT_OF_WORK_RETRY_ATTEMPTS.
    """
    if timeout is None and has_app_context():
        timeout = current_app.config.get("UNIT_OF_WORK_TIMEOUT_SECONDS") or None
    if attempts is None:
        attempts = current_app.config.get("UNIT_OF_WORK_RETRY_ATTEMPTS", 3) if has_app_context() else 3

    for attempt in range(attempts):
        try:
            with unit_of_work(timeout=timeout) as uow:
                return func(uow)
        except (OperationalError, StaleDataError) as exc:
            if attempt >= attempts - 1:
                logger.error("Unit of work failed after %d attempts", attempts)
                raise PersistenceError() from exc
            logger.info("Retrying unit of work after %s (attempt %d)", type(exc).__name__, attempt + 1)
            time.sleep(backoff_base * (2 ** attempt))
    raise PersistenceError()
