from functools import lru_cache
from pathlib import Path

from fastapi import HTTPException

from adapter.fake.user_store import FakeUserStore
from adapter.filesystem.user_store import FileSystemUserStore
from adapter.mongodb.connection import get_mongodb_client
from adapter.mongodb.user_store import MongoUserStore
from adapter.sql.user_store import SQLUserStore, make_engine
from port.user_store import UserStore
from services.magic_link import MagicLinkAuth
from utils.settings import Settings, load_settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def build_user_store(settings: Settings) -> UserStore:
    """Create the UserStore selected by MAGICLINK_STORAGE."""
    if settings.storage == 'filesystem':
        return FileSystemUserStore(Path(settings.storage_dir))
    if settings.storage == 'sql':
        store = SQLUserStore(make_engine(settings.database_url), settings.sql_table)
        store.create_table()
        return store
    if settings.storage == 'mongodb':
        client = get_mongodb_client(settings.mongo_url)
        if client is None:
            raise HTTPException(status_code=503, detail="Database unavailable")
        return MongoUserStore(client[settings.mongo_database])
    return FakeUserStore()


@lru_cache
def get_user_store() -> UserStore:
    return build_user_store(get_settings())


@lru_cache
def get_magic_link() -> MagicLinkAuth:
    settings = get_settings()
    return MagicLinkAuth.create(
        settings.secret_key,
        settings.challenge_expiry,
        settings.session_expiry,
        get_user_store(),
    )
