"""MongoDB connection facade.

This module defines:
- `MongoWrapper`: connect with credentials, select a database/collection and run
  basic CRUD on the selected collection.

Notes:
    - Construction is import-safe and I/O free; nothing touches the network before `connect()`.
    - Every CRUD call is gated by `ping()`, which reconnects once when the server is unreachable.
    - Writes go through a `RetryPolicy` (one retry, no backoff unless configured).
    - CRUD calls return an `OperationResult`; pymongo exceptions are re-raised as `DatabaseError`
      everywhere else.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pymongo import MongoClient, ReadPreference
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .connection import (
    ConnectionSettings,
    Credentials,
    build_uri,
    mask_uri,
    open_client,
    settings_from_secrets,
)
from .constants import (
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    NO_COLLECTION_MSG,
    NO_DATABASE_MSG,
    NOT_CONNECTED_MSG,
)
from .errors import ApplicationError, DatabaseError, NotConnectedError
from .results import OperationResult
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class MongoWrapper:
    """Small CRUD surface over one MongoDB collection.

    Lifecycle:
        construct -> connect() -> set_database() -> set_collection() -> CRUD -> disconnect()

    Results:
        - SUCCESS: `value` holds the document / cursor / deleted count
        - NOT_FOUND: find matched nothing
        - CONNECTION_UNAVAILABLE: ping and its reconnect both failed
        - FAILED: the driver call failed on every attempt

    Instances are meant for one logical session each. Selection state is
    guarded by a lock so a reconnect never races a `set_collection`.
    """

    # --------------------
    # Construction
    # --------------------

    def __init__(
        self,
        username: str,
        password: str,
        url_suffix: str,
        *,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        retries: int = DEFAULT_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS,
    ):
        self._init_from_settings(
            ConnectionSettings(
                credentials=Credentials(username=username, password=password),
                url_suffix=url_suffix,
                connect_timeout=connect_timeout,
                retries=retries,
                retry_backoff=retry_backoff,
            )
        )

    def _init_from_settings(self, settings: ConnectionSettings) -> None:
        self.settings = settings
        self.retry_policy = RetryPolicy(retries=settings.retries, backoff=settings.retry_backoff)
        self._read_policy = RetryPolicy(retries=0)
        self._lock = threading.RLock()

        self.client: Optional[MongoClient] = None
        self.db: Optional[Database] = None
        self.col: Optional[Collection] = None
        # names survive a reconnect so the selection can be re-bound
        self._db_name: Optional[str] = settings.database_name
        self._col_name: Optional[str] = settings.collection_name

    @classmethod
    def from_settings(cls, settings: ConnectionSettings) -> "MongoWrapper":
        """Build a wrapper from ready-made `ConnectionSettings` (no I/O, like `__init__`)."""
        obj = cls.__new__(cls)
        obj._init_from_settings(settings)
        return obj

    @classmethod
    def from_secrets(cls, secrets: Mapping[str, Any]) -> "MongoWrapper":
        """Build a wrapper from a secrets mapping (see `settings_from_secrets`).

        `database_name` / `collection_name`, when present, are selected on `connect()`.
        """
        return cls.from_settings(settings_from_secrets(secrets))

    @property
    def credentials(self) -> Credentials:
        return self.settings.credentials

    @property
    def url_suffix(self) -> str:
        return self.settings.url_suffix

    @property
    def uri(self) -> str:
        """The connection string handed to pymongo."""
        return build_uri(self.credentials, self.url_suffix)

    @property
    def database_name(self) -> Optional[str]:
        return self._db_name if self.db is not None else None

    @property
    def collection_name(self) -> Optional[str]:
        return self._col_name if self.col is not None else None

    def __repr__(self) -> str:
        return f"MongoWrapper({mask_uri(self.credentials, self.url_suffix)!r}, db={self.database_name!r}, col={self.collection_name!r})"

    # --------------------
    # Connection
    # --------------------

    def connect(self) -> None:
        """Create a client for `uri`, bounded by the connect timeout.

        May be called again to reconnect: the new client replaces the old one,
        the old one is closed, and the selected database/collection are re-bound.

        Raises:
            DatabaseError: If pymongo cannot create the client.
        """
        with self._lock:
            new_client = open_client(self.settings)
            old_client, self.client = self.client, new_client
            self._rebind_selection()

        if old_client is not None and old_client is not new_client:
            try:
                old_client.close()
            except PyMongoError as e:
                logger.warning("Closing the previous client failed: %s", e)



    def disconnect(self) -> bool:
        """Close the client.

        Returns:
            True if a client was closed, False if there was nothing to close.

        Raises:
            DatabaseError: If pymongo fails to close the client.
        """
        with self._lock:
            if self.client is None:
                return False
            try:
                self.client.close()
            except PyMongoError as e:
                raise DatabaseError(f"disconnect failed: {e}") from e
            self.client = None
            self.db = None
            self.col = None
        logger.info("Disconnected from %s", mask_uri(self.credentials, self.url_suffix))
        return True



    def ping(self) -> None:
        """Make sure the server answers, reconnecting once if it doesn't.

        Raises:
            DatabaseError: If the ping fails and the reconnect fails too.
        """
        with self._lock:
            client = self.client
        if client is None:
            logger.info("ping: no client yet, connecting")
            self.connect()
            return

        try:
            client.admin.command("ping", read_preference=ReadPreference.PRIMARY)
        except PyMongoError as e:
            logger.warning("ping failed (%s), reconnecting", e)
            try:
                self.connect()
            except DatabaseError:
                logger.error("reconnect after failed ping failed")
                raise

    def __enter__(self) -> "MongoWrapper":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    # --------------------
    # Selection
    # --------------------

    def set_database(self, db_name: str) -> None:
        """Select a database by name (no existence check).

        Switching to another database drops the selected collection.

        Raises:
            NotConnectedError: If `connect()` was never called.
            DatabaseError: If pymongo rejects the name.
        """
        with self._lock:
            if self.client is None:
                raise NotConnectedError(NOT_CONNECTED_MSG)
            try:
                db = self.client[db_name]
            except PyMongoError as e:
                raise DatabaseError(f"set_database failed: {e}") from e
            self.db = db
            if db_name != self._db_name:
                self.col = None
                self._col_name = None
            self._db_name = db_name
        logger.info("Selected database %s", db_name)



    def set_collection(self, cl_name: str) -> bool:
        """Select a collection in the current database.

        Returns:
            True once the collection is selected.

        Raises:
            ApplicationError: If no database has been selected yet.
            DatabaseError: If pymongo rejects the name.
        """
        with self._lock:
            if self.db is None:
                raise ApplicationError(NO_DATABASE_MSG)
            try:
                self.col = self.db[cl_name]
            except PyMongoError as e:
                raise DatabaseError(f"set_collection failed: {e}") from e
            self._col_name = cl_name
        logger.info("Selected collection %s.%s", self._db_name, cl_name)
        return True

    def _rebind_selection(self) -> None:
        self.db = None
        self.col = None
        if self._db_name:
            self.db = self.client[self._db_name]
            if self._col_name:
                self.col = self.db[self._col_name]

    def _collection(self) -> Collection:
        with self._lock:
            if self.col is None:
                raise ApplicationError(NO_COLLECTION_MSG)
            return self.col

    def _unavailable(self) -> Optional[OperationResult]:
        """Ping gate: None when the server is reachable, a CONNECTION_UNAVAILABLE result otherwise."""
        try:
            self.ping()
        except DatabaseError as e:
            return OperationResult.connection_unavailable(e)
        return None

    # --------------------
    # Read
    # --------------------

    def find_one(self, filter: Optional[Mapping[str, Any]] = None, **options: Any) -> OperationResult:
        """Find a single document.

        Returns:
            SUCCESS with the document, NOT_FOUND, CONNECTION_UNAVAILABLE or FAILED.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        # a reconnect during the ping re-binds the collection to the new client
        col = self._collection()

        try:
            doc = self._read_policy.run(f"[{col.name}] find_one", lambda: col.find_one(filter, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        if doc is None:
            return OperationResult.not_found()
        return OperationResult.success(doc)



    def find_many(self, filter: Optional[Mapping[str, Any]] = None, **options: Any) -> OperationResult:
        """Find documents; `options` go straight to `Collection.find` (projection, sort, limit, ...).

        Returns:
            SUCCESS with a pymongo Cursor, CONNECTION_UNAVAILABLE or FAILED.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            cursor = self._read_policy.run(f"[{col.name}] find", lambda: col.find(filter, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return OperationResult.success(cursor)



    def find_many_df(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Dict[str, int]] = None,
        **options: Any,
    ) -> OperationResult:
        """Same as `find_many`, materialised into a pandas DataFrame (one row per document)."""
        result = self.find_many(filter, projection=projection, **options)
        if not result:
            return result

        cursor = result.value
        try:
            docs: List[Dict[str, Any]] = self._read_policy.run("find_many_df", lambda: list(cursor))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return OperationResult.success(pd.DataFrame(docs))

    # --------------------
    # Write
    # --------------------

    def insert_one(self, document: Any, **options: Any) -> OperationResult:
        """Insert one document, retrying per the retry policy.

        Returns:
            SUCCESS with the very `document` object passed in, CONNECTION_UNAVAILABLE or FAILED.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            self.retry_policy.run(f"[{col.name}] insert_one", lambda: col.insert_one(document, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return OperationResult.success(document)



    def insert_many(self, documents: List[Any], **options: Any) -> OperationResult:
        """Not implemented.

        Returns:
            CONNECTION_UNAVAILABLE if the ping gate fails.

        Raises:
            NotImplementedError: Whenever the server is reachable.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        raise NotImplementedError("insert_many is not implemented")



    def update_one(self, filter: Mapping[str, Any], update: Any, **options: Any) -> OperationResult:
        """Update one document, then return it via `find_one(filter)`.

        Returns:
            The follow-up `find_one` result on success, else CONNECTION_UNAVAILABLE or FAILED.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            self.retry_policy.run(f"[{col.name}] update_one", lambda: col.update_one(filter, update, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return self.find_one(filter)



    def update_many(self, filter: Mapping[str, Any], updates: Any, **options: Any) -> OperationResult:
        """Not implemented.

        Raises:
            NotImplementedError: Whenever the server is reachable.
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        raise NotImplementedError("update_many is not implemented")



    def replace_one(self, filter: Mapping[str, Any], replacement: Any, **options: Any) -> OperationResult:
        """Replace one document, then return it via `find_one(filter)`."""
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            self.retry_policy.run(
                f"[{col.name}] replace_one", lambda: col.replace_one(filter, replacement, **options)
            )
        except DatabaseError as e:
            return OperationResult.failed(e)
        return self.find_one(filter)

    # --------------------
    # Delete
    # --------------------

    def remove_one(self, filter: Mapping[str, Any], **options: Any) -> OperationResult:
        """Delete one document.

        Returns:
            SUCCESS with the deleted count (truthy even when 0 documents matched),
            CONNECTION_UNAVAILABLE or FAILED (both falsy).
        """
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            res = self.retry_policy.run(f"[{col.name}] delete_one", lambda: col.delete_one(filter, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return OperationResult.success(res.deleted_count)



    def remove_many(self, filter: Mapping[str, Any], **options: Any) -> OperationResult:
        """Delete every matching document. Same result contract as `remove_one`."""
        self._collection()
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable
        col = self._collection()

        try:
            res = self.retry_policy.run(f"[{col.name}] delete_many", lambda: col.delete_many(filter, **options))
        except DatabaseError as e:
            return OperationResult.failed(e)
        return OperationResult.success(res.deleted_count)
