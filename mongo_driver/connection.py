# mongo_driver/connection.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .constants import (
    CLUSTER_URL_SUFFIX,
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    SECRET_CLUSTER_URL,
    SECRET_COLLECTION,
    SECRET_CONNECT_TIMEOUT,
    SECRET_DATABASE,
    SECRET_PASSWORD,
    SECRET_RETRIES,
    SECRET_RETRY_BACKOFF,
    SECRET_URL_SUFFIX,
    SECRET_USERNAME,
    URI_SCHEME,
)
from .errors import ApplicationError, DatabaseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """User and password to authenticate with."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ConnectionSettings:
    """Everything needed to open (and re-open) a client."""

    credentials: Credentials
    url_suffix: str
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS
    database_name: Optional[str] = None
    collection_name: Optional[str] = None


def build_uri(credentials: Credentials, url_suffix: str) -> str:
    """Return ``mongodb+srv://user:password`` followed by the url suffix.

    The suffix is expected to start with ``@host/...``, e.g. ``@cluster0.example.net/test``.
    """
    return f"{URI_SCHEME}{credentials.username}:{credentials.password}{url_suffix}"


def mask_uri(credentials: Credentials, url_suffix: str) -> str:
    """Same as `build_uri` but safe to log."""
    return f"{URI_SCHEME}{credentials.username}:***{url_suffix}"


def open_client(settings: ConnectionSettings) -> MongoClient:
    """Create a MongoClient bounded by the connect timeout.

    Raises:
        DatabaseError: If pymongo rejects the URI or cannot resolve the SRV record.
    """
    timeout_ms = int(settings.connect_timeout * 1000)
    uri = build_uri(settings.credentials, settings.url_suffix)
    try:
        client = MongoClient(
            uri,
            connectTimeoutMS=timeout_ms,
            serverSelectionTimeoutMS=timeout_ms,
        )
    except PyMongoError as e:
        raise DatabaseError(f"connect failed: {e}") from e
    logger.info("Connected client to %s", mask_uri(settings.credentials, settings.url_suffix))
    return client


def settings_from_secrets(secrets: Mapping[str, Any]) -> ConnectionSettings:
    """Build connection settings from a secrets mapping (e.g. ``st.secrets``).

    Required keys:
        - mongo_username, mongo_password
        - mongo_url_suffix, or mongo_cluster_url (expanded to
          ``@<cluster>/?retryWrites=true&w=majority``)

    Optional keys:
        - database_name, collection_name
        - mongo_connect_timeout (seconds), mongo_retries, mongo_retry_backoff (seconds)

    Raises:
        ApplicationError: If a required key is missing or a number cannot be parsed.
    """
    missing = [k for k in (SECRET_USERNAME, SECRET_PASSWORD) if k not in secrets]
    if SECRET_URL_SUFFIX not in secrets and SECRET_CLUSTER_URL not in secrets:
        missing.append(f"{SECRET_URL_SUFFIX} or {SECRET_CLUSTER_URL}")
    if missing:
        raise ApplicationError(f"settings_from_secrets: missing keys: {', '.join(missing)}")

    if SECRET_URL_SUFFIX in secrets:
        url_suffix = str(secrets[SECRET_URL_SUFFIX])
    else:
        url_suffix = CLUSTER_URL_SUFFIX.format(cluster_url=secrets[SECRET_CLUSTER_URL])

    try:
        connect_timeout = float(secrets.get(SECRET_CONNECT_TIMEOUT, CONNECT_TIMEOUT_SECONDS))
        retries = int(secrets.get(SECRET_RETRIES, DEFAULT_RETRIES))
        retry_backoff = float(secrets.get(SECRET_RETRY_BACKOFF, DEFAULT_RETRY_BACKOFF_SECONDS))
    except (TypeError, ValueError) as e:
        raise ApplicationError(f"settings_from_secrets: invalid number: {e}") from e

    return ConnectionSettings(
        credentials=Credentials(
            username=str(secrets[SECRET_USERNAME]),
            password=str(secrets[SECRET_PASSWORD]),
        ),
        url_suffix=url_suffix,
        connect_timeout=connect_timeout,
        retries=retries,
        retry_backoff=retry_backoff,
        database_name=secrets.get(SECRET_DATABASE),
        collection_name=secrets.get(SECRET_COLLECTION),
    )
