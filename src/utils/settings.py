"""Environment-driven settings for the API and CLI entry points."""

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

STORAGE_BACKENDS = ('memory', 'filesystem', 'sql', 'mongodb')


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer number of seconds, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    secret_key: str
    challenge_expiry: timedelta
    session_expiry: timedelta
    storage: str = 'memory'
    storage_dir: str = './users'
    database_url: str = 'sqlite:///./magiclink.db'
    sql_table: str = 'magiclink'
    mongo_url: str | None = None
    mongo_database: str = 'magiclink'
    public_base_url: str = 'http://localhost:8003'
    cookie_name: str = 'MLCOOKIE'
    cookie_max_age: int = 3600

    def __repr__(self) -> str:
        return f"Settings(storage={self.storage!r}, public_base_url={self.public_base_url!r})"


def load_settings() -> Settings:
    """Read settings from the environment (and a .env file, if present).

    Raises:
        ValueError: missing secret, malformed number or unknown storage backend
    """
    load_dotenv()

    secret_key = os.getenv("MAGICLINK_SECRET_KEY")
    if not secret_key:
        raise ValueError(
            "MAGICLINK_SECRET_KEY environment variable is required. "
            "Generate a secure key with: openssl rand -hex 32"
        )

    storage = os.getenv("MAGICLINK_STORAGE", "memory").strip().lower()
    if storage not in STORAGE_BACKENDS:
        raise ValueError(f"MAGICLINK_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {storage!r}")

    return Settings(
        secret_key=secret_key,
        challenge_expiry=timedelta(seconds=_int_env("MAGICLINK_CHALLENGE_EXPIRY_SECONDS", 3600)),
        session_expiry=timedelta(seconds=_int_env("MAGICLINK_SESSION_EXPIRY_SECONDS", 86400)),
        storage=storage,
        storage_dir=os.getenv("MAGICLINK_STORAGE_DIR", "./users"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./magiclink.db"),
        sql_table=os.getenv("MAGICLINK_SQL_TABLE", "magiclink"),
        mongo_url=os.getenv("MONGO_URL"),
        mongo_database=os.getenv("MONGODB_DATABASE", "magiclink"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8003").rstrip("/"),
        cookie_name=os.getenv("MAGICLINK_COOKIE_NAME", "MLCOOKIE"),
        cookie_max_age=_int_env("MAGICLINK_COOKIE_MAX_AGE", 3600),
    )
