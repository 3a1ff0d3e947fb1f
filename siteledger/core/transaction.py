from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from siteledger.common.exceptions import LedgerError, LedgerTransactionTimeout
from siteledger.core.config import settings
from siteledger.logger_config import logger

# query_canceled (statement_timeout) and lock_not_available (lock_timeout)
TIMEOUT_SQLSTATES = frozenset({"57014", "55P03"})


def _apply_timeouts(db: Session, timeout_seconds: int) -> None:
    if db.get_bind().dialect.name != "postgresql":
        return

    timeout_ms = int(timeout_seconds * 1000)
    db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
    db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))


def _is_timeout(error: OperationalError) -> bool:
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code in TIMEOUT_SQLSTATES


@contextmanager
def transaction_scope(
    db: Session,
    operation: str,
    timeout_seconds: Optional[int] = None,
) -> Iterator[Session]:
    """
    Run the block as one unit of work: commit on success, roll back on any
    error and re-raise it. Statement/lock timeouts surface as
    LedgerTransactionTimeout so callers can retry.
    """
    timeout = timeout_seconds or settings.LEDGER_TX_TIMEOUT_SECONDS

    try:
        _apply_timeouts(db, timeout)
        yield db
        db.commit()
    except LedgerError as e:
        db.rollback()
        logger.error(f"{operation} rolled back: [{e.error_code}] {e.message}")
        raise
    except OperationalError as e:
        db.rollback()
        if _is_timeout(e):
            logger.error(f"{operation} timed out after {timeout}s, rolled back")
            raise LedgerTransactionTimeout(operation, timeout) from e
        logger.exception(f"Database error in {operation}")
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Unexpected error in {operation}")
        raise
