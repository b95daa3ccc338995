"""FastAPI application entry point."""

import logging
import os
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from adapter.mongodb.user_store import MongoUserStore
from api.dependencies import get_magic_link
from api.routes import auth, counter, health
from utils.logging import setup_structured_logging

setup_structured_logging()

logger = logging.getLogger(__name__)

# pyproject.toml is the single source of the version
_project_root = Path(__file__).parent.parent.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "Magic Link Auth"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: fail fast on bad configuration, prepare storage."""
    magic_link = get_magic_link()
    logger.info("Magic link auth ready", extra={"storage": type(magic_link.store).__name__})

    if isinstance(magic_link.store, MongoUserStore):
        if magic_link.store.ensure_indexes():
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")

    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="Passwordless login with signed challenge and session tokens",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(auth.router)
app.include_router(health.router)
app.include_router(counter.router)


if __name__ == "__main__":
    import uvicorn
    # Matches the default PUBLIC_BASE_URL
    port = int(os.getenv("PORT", 8003))
    uvicorn.run(app, host="0.0.0.0", port=port, access_log=False)
