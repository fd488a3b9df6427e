import logging
import time
from functools import wraps

from django.db import DatabaseError

from .exceptions import ShopError

logger = logging.getLogger(__name__)

# PostgreSQL: serialization failure / deadlock
PG_RETRY_ERRCODES = {"40001", "40P01"}


def _pgcode_from(exc: Exception):
    cause = getattr(exc, "__cause__", None)
    return getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)


def is_retryable(exc: Exception) -> bool:
    if isinstance(exc, ShopError):
        return exc.retryable
    if not isinstance(exc, DatabaseError):
        return False
    code = _pgcode_from(exc)
    if code and code in PG_RETRY_ERRCODES:
        return True
    msg = str(exc).lower()
    return any(k in msg for k in ("deadlock detected", "could not serialize access"))


def retry_on_tx_failure(max_attempts=3, backoff=0.05):
    """Re-run ``fn`` when it fails with a retryable error.

    Only wrap calls that are safe to repeat from scratch; the order endpoint
    uses it around a whole placement, never inside one.
    """
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                attempt += 1
                try:
                    return fn(*args, **kwargs)
                except Exception as e:
                    if attempt >= max_attempts or not is_retryable(e):
                        raise
                    logger.warning(f"[retry] {fn.__name__} failed ({attempt}/{max_attempts}): {e}")
                    time.sleep(backoff * attempt)
        return wrapper
    return deco
