# mongo_driver/retry.py
from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from pymongo.errors import PyMongoError

from .constants import DEFAULT_RETRIES, DEFAULT_RETRY_BACKOFF_SECONDS
from .errors import ApplicationError, DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Run a driver call, retrying it on pymongo errors.

    Args:
        retries: Extra attempts after the first one (0 disables retrying).
        backoff: Seconds to sleep before retry ``n`` is ``backoff * n``.
    """

    def __init__(self, retries: int = DEFAULT_RETRIES, backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS) -> None:
        if retries < 0:
            raise ApplicationError(f"RetryPolicy: 'retries' must be >= 0, got {retries}")
        if backoff < 0:
            raise ApplicationError(f"RetryPolicy: 'backoff' must be >= 0, got {backoff}")
        self.retries = retries
        self.backoff = backoff

    @property
    def attempts(self) -> int:
        return self.retries + 1

    def run(self, label: str, fn: Callable[[], T]) -> T:
        """Call `fn` up to `attempts` times and return its first successful result.

        Raises:
            DatabaseError: If every attempt raised a PyMongoError (the last one is chained).
        """
        last_error: PyMongoError | None = None
        for attempt in range(1, self.attempts + 1):
            if attempt > 1 and self.backoff:
                time.sleep(self.backoff * (attempt - 1))
            try:
                return fn()
            except PyMongoError as e:
                last_error = e
                logger.warning("%s attempt %d/%d failed: %s", label, attempt, self.attempts, e)

        logger.error("%s failed after %d attempts", label, self.attempts)
        raise DatabaseError(f"{label} failed: {last_error}") from last_error

    def __repr__(self) -> str:
        return f"RetryPolicy(retries={self.retries}, backoff={self.backoff})"
