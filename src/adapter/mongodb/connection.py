"""Process-wide MongoDB client for the mongodb storage backend."""

import os
import logging
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Driver-level logs are noisy at INFO
logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'magiclink')
USERS_COLLECTION_NAME = 'users'

# Short timeouts: a login request should fail fast rather than hang on storage
CLIENT_OPTIONS = {
    'serverSelectionTimeoutMS': 5000,
    'connectTimeoutMS': 5000,
    'socketTimeoutMS': 10000,
    'maxPoolSize': 20,
    'minPoolSize': 0,
    'maxIdleTimeMS': 60000,
    'retryWrites': True,
    'retryReads': True,
}

_client_cache: MongoClient | None = None
_connection_attempted = False
_connection_failed = False


def reset_client() -> None:
    """Close and forget the cached client, allowing a fresh connection attempt."""
    global _client_cache, _connection_attempted, _connection_failed
    if _client_cache is not None:
        _client_cache.close()
    _client_cache = None
    _connection_attempted = False
    _connection_failed = False


def _connect(url: str) -> MongoClient:
    client = MongoClient(url, **CLIENT_OPTIONS)
    client.admin.command('ping')
    return client


def _is_healthy(client: MongoClient) -> bool:
    try:
        client.admin.command('ping')
        return True
    except PyMongoError:
        return False


def get_mongodb_client(url: str | None = None) -> MongoClient | None:
    """Return a connected client, or None if MongoDB is unreachable.

    A cached client is reused while it answers ping and is replaced
    otherwise. If the very first attempt fails (missing URL, bad host)
    the failure is remembered and later calls return None at once.
    """
    global _client_cache, _connection_attempted, _connection_failed

    if _client_cache is not None:
        if _is_healthy(_client_cache):
            return _client_cache
        logger.debug("[MONGODB] Cached client failed ping, reconnecting")
        _client_cache = None

    if _connection_failed:
        return None

    url = url or MONGO_URL
    if not url:
        logger.error("[MONGODB] MONGO_URL not configured")
        _connection_failed = True
        return None

    try:
        client = _connect(url)
    except PyMongoError as e:
        if not _connection_attempted:
            logger.error("[MONGODB] Initial connection failed", extra={"error": str(e)[:200]})
            _connection_failed = True
        return None

    if not _connection_attempted:
        logger.info("[MONGODB] Connected", extra={"database": DATABASE_NAME})
    _connection_attempted = True
    _client_cache = client
    return client
