from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from reservation_engine.core.config import settings
from reservation_engine.core.exceptions import ConflictError, ReservationEngineError, StorageError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def is_uniqueness_violation(exc: IntegrityError) -> bool:
    """Return ``True`` when the integrity error comes from a unique constraint."""

    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig if orig is not None else exc).lower()
    return "unique" in message or "duplicate key" in message


@contextmanager
def unit_of_work(
    db: Session,
    *,
    conflict_message: str = "The requested window is no longer available",
    on_stale: Optional[Callable[[], ReservationEngineError]] = None,
) -> Iterator[Session]:
    """Run a block of writes as one atomic transaction.

    Commits when the block finishes. A concurrent writer detected by the store
    (unique index or version mismatch) is reported as ``ConflictError``, or as
    the error built by ``on_stale`` after rollback when one is given. Any other
    store failure becomes ``StorageError``.
    """

    try:
        yield db
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.info("Concurrent write detected by version check: %s", exc)
        if on_stale is not None:
            raise on_stale() from exc
        raise ConflictError(conflict_message, [_race_violation()]) from exc
    except IntegrityError as exc:
        db.rollback()
        if is_uniqueness_violation(exc):
            logger.info("Concurrent write rejected by unique constraint: %s", exc.orig)
            raise ConflictError(conflict_message, [_race_violation()]) from exc
        logger.exception("Integrity error while committing unit of work")
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error while committing unit of work")
        raise StorageError() from exc
    except Exception:
        db.rollback()
        raise


def _race_violation() -> dict:
    return {
        "kind": "reservation",
        "message": "Another booking for this court and date was committed concurrently",
    }


# SQLite only autoincrements INTEGER primary keys.
BigIntId = BigInteger().with_variant(Integer, "sqlite")
