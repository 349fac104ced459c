# mongo_driver/__init__.py

"""Thin MongoDB connection facade.

Contains:
    - MongoWrapper: connect, select a database/collection, run basic CRUD
    - OperationResult / ResultStatus: outcome of a CRUD call
    - RetryPolicy: retry wrapper for driver calls
    - DatabaseError / ApplicationError: wrappers for pymongo and usage errors
"""

from .connection import ConnectionSettings, Credentials, build_uri, settings_from_secrets
from .errors import ApplicationError, DatabaseError, NotConnectedError
from .mongo_wrapper import MongoWrapper
from .results import OperationResult, ResultStatus
from .retry import RetryPolicy

__all__ = [
    "MongoWrapper",
    "OperationResult",
    "ResultStatus",
    "RetryPolicy",
    "ConnectionSettings",
    "Credentials",
    "build_uri",
    "settings_from_secrets",
    "DatabaseError",
    "ApplicationError",
    "NotConnectedError",
]
