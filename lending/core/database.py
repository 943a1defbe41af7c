from typing import Callable, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lending.core.config import DATABASE_URL, DB_TIMEOUT, WRITE_RETRIES, logger
from lending.core.errors import ErrorCode, ErrorKind, LendingError, internal

T = TypeVar("T")

# sqlite "database is locked", postgres serialization_failure / deadlock_detected
SQLITE_CONFLICTS = ("database is locked", "database table is locked")
PG_CONFLICT_CODES = ("40001", "40P01")


def make_engine(url: str = DATABASE_URL, timeout: float = DB_TIMEOUT):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
    return create_engine(url, connect_args=connect_args)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_write_conflict(exc: OperationalError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in PG_CONFLICT_CODES:
        return True
    return any(marker in str(orig) for marker in SQLITE_CONFLICTS)


def atomic(db: Session, work: Callable[[], T], retries: int = WRITE_RETRIES) -> T:
    """Run ``work`` and commit it as one unit, or roll everything back.

    Only transient write conflicts are retried, and each retry runs ``work``
    from the top so every precondition is checked again against fresh rows.
    """
    attempt = 0
    while True:
        try:
            result = work()
            db.commit()
            return result
        except LendingError as exc:
            db.rollback()
            if exc.kind is ErrorKind.INTERNAL:
                logger.error(f"Invariant violation {exc.code} on {exc.resource}: {exc.message}")
            raise
        except IntegrityError as exc:
            db.rollback()
            logger.error(f"Integrity violation: {exc.orig}")
            raise internal(ErrorCode.INTEGRITY_VIOLATION, str(exc.orig)) from exc
        except OperationalError as exc:
            db.rollback()
            if not is_write_conflict(exc):
                logger.error(f"Database failure: {exc.orig}")
                raise internal(ErrorCode.DATABASE_FAILURE, str(exc.orig)) from exc
            if attempt >= retries:
                logger.error(f"Write conflict persisted after {retries} retries: {exc.orig}")
                raise internal(ErrorCode.WRITE_CONFLICT, str(exc.orig)) from exc
            attempt += 1
            logger.warning(f"Write conflict, retrying ({attempt}/{retries}): {exc.orig}")
