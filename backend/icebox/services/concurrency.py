# Overview: Transaction boundary and row locking shared by every use case.

from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError, IceboxError, InternalError
from ..extensions import db
from ..logging_config import get_logger

logger = get_logger("services.concurrency")

T = TypeVar("T")


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_in_transaction(func: Callable[[], T], *, operation: str = "operation") -> T:
    """
    Execute one use case as exactly one database transaction.

    Commits when func returns, rolls back on any exception. There is no retry:
    lock contention (OperationalError, StaleDataError) and constraint races
    (IntegrityError) surface as ConflictError, other storage failures as
    InternalError. Domain errors propagate unchanged after the rollback.
    """
    try:
        result = func()
        db.session.commit()
        return result
    except IceboxError:
        db.session.rollback()
        raise
    except (OperationalError, StaleDataError) as exc:
        db.session.rollback()
        logger.warning("%s aborted by concurrent modification", operation, extra={"operation": operation})
        raise ConflictError(f"Concurrent modification during {operation}; please retry") from exc
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("%s violated a storage constraint", operation, extra={"operation": operation})
        raise ConflictError(f"Conflicting write during {operation}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("%s failed in storage", operation, extra={"operation": operation})
        raise InternalError(f"Storage failure during {operation}") from exc
    except Exception:
        db.session.rollback()
        raise
