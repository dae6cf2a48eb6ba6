"""
Transaction helpers.
"""
import logging
import random
import time
from functools import wraps

from django.conf import settings
from django.db import DatabaseError, transaction

logger = logging.getLogger(__name__)

# PostgreSQL: duplicate_prepared_statement
PREPARED_STATEMENT_EXISTS = '42P05'


def is_transient_conflict(exc: DatabaseError) -> bool:
    cause = exc.__cause__
    if getattr(cause, 'pgcode', None) == PREPARED_STATEMENT_EXISTS:
        return True
    return 'prepared statement' in str(exc)


def atomic_with_retry(func):
    """
    Run ``func`` inside ``transaction.atomic()``, retrying on the transient
    prepared-statement conflict only. Any other database error propagates.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        retries = getattr(settings, 'DB_CONFLICT_RETRIES', 1)
        attempt = 0
        while True:
            try:
                with transaction.atomic():
                    return func(*args, **kwargs)
            except DatabaseError as exc:
                if attempt >= retries or not is_transient_conflict(exc):
                    raise
                attempt += 1
                logger.warning(f"Retrying {func.__name__} after transient conflict: {exc}")
                time.sleep(0.05 + random.random() * 0.1)
    return wrapper
