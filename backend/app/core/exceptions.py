"""Error taxonomy for the ledger and register services.

Business-rule failures derive from ``LedgerError`` (itself a ``ValueError``, so
callers that only care about "input rejected" can keep catching ValueError).
``StoreError`` is not a ValueError: it means the database could
not be reached or refused the operation for reasons unrelated to the input.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class LedgerError(ValueError):
    """Base class for validation failures surfaced to the caller."""


class NotFoundError(LedgerError):
    pass


class InvalidStateError(LedgerError):
    pass


class InvalidInputError(LedgerError):
    pass


class ConflictError(LedgerError):
    pass


class ExceedsBalanceError(LedgerError):
    def __init__(self, amount, outstanding) -> None:  # type: ignore[no-untyped-def]
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Payment amount ({amount}) exceeds the outstanding balance ({outstanding})"
        )


class StoreError(Exception):
    """The store could not complete the operation (connectivity, permissions)."""


def translate_store_errors(func: Callable[P, R]) -> Callable[P, R]:
    """Roll back and re-raise SQLAlchemy failures as ledger/store errors.

    The decorated function must take the ``Session`` as its first argument.
    A unique-constraint violation is a lost race and surfaces as
    ``ConflictError``; anything else from the driver becomes ``StoreError``.
    A rejected operation also rolls back, so none of its pending changes
    reach the next commit on the session.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        db = args[0] if args else kwargs.get("db")
        try:
            return func(*args, **kwargs)
        except LedgerError:
            if isinstance(db, Session):
                db.rollback()
            raise
        except IntegrityError as e:
            if isinstance(db, Session):
                db.rollback()
            logger.warning("Integrity violation in %s: %s", func.__name__, e.orig)
            raise ConflictError("The record conflicts with an existing one") from e
        except SQLAlchemyError as e:
            if isinstance(db, Session):
                db.rollback()
            logger.error("Store failure in %s: %s", func.__name__, e)
            raise StoreError("The data store could not complete the operation") from e

    return wrapper
