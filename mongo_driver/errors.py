# mongo_driver/errors.py
class DatabaseError(Exception):
    """Errors raised when MongoDB operations fail."""


class ApplicationError(Exception):
    """Errors raised when the wrapper is misused or misconfigured (not DB-related)."""


class NotConnectedError(ApplicationError):
    """An operation needing a client ran before `connect()`."""
