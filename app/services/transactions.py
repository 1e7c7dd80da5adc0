import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.config.settings import get_settings
from app.core.errors import ReviewHubError, StorageError
from app.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_BACKOFF_SECONDS = 0.05


def run_in_transaction(db, work: Callable[[], T], attempts: int | None = None) -> T:
    """
    Run ``work`` and commit, as one unit.

    Any failure rolls the whole unit back. Transient store errors re-run ``work``
    from scratch, up to ``attempts`` times; application errors are re-raised as-is.
    """
    attempts = attempts or get_settings().transaction_attempts
    attempt = 0
    while True:
        attempt += 1
        try:
            result = work()
            db.commit()
            return result
        except ReviewHubError:
            db.rollback()
            raise
        except OperationalError as exc:
            db.rollback()
            if attempt >= attempts:
                logger.error(
                    "Transaction failed after retries",
                    extra={"event": "transaction_failed", "attempts": attempt, "error": str(exc.orig)},
                )
                raise StorageError("Storage is unavailable, the change was not applied") from exc
            logger.warning(
                "Transient storage error, retrying transaction",
                extra={"event": "transaction_retry", "attempt": attempt, "error": str(exc.orig)},
            )
            time.sleep(_BACKOFF_SECONDS * attempt)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Transaction failed",
                extra={"event": "transaction_failed", "attempts": attempt, "error": str(exc)},
            )
            raise StorageError("Storage write failed, the change was not applied") from exc
        except Exception:
            db.rollback()
            raise
