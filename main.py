"""FastAPI entrypoint for the Dev Studio backend.

- `devstudio/routes/` for the chat endpoints
- `devstudio/conversation/` for the Dev Studio state machine
- `devstudio/services/` for store access
- `devstudio/db/` for SQLAlchemy models, session management and seeding
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from devstudio.core.config import settings
from devstudio.core.domain_exceptions import DomainException
from devstudio.core.exceptions import (
    database_exception_handler,
    domain_exception_handler,
    http_exception_handler,
)
from devstudio.core.middleware import RequestContextMiddleware
from devstudio.db.init_db import init_db
from devstudio.routes import devstudio

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize app resources before serving traffic."""
    # Ensure SQL tables and seed rows exist at app startup.
    init_db()
    logger.info("Database initialized.")

    yield

app = FastAPI(
    title="Dev Studio API",
    version="0.1.0",
    description="Conversational builder for marketplace mini apps.",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

app.include_router(devstudio.router)

@app.get("/", tags=["health"])
def root() -> dict[str, str]:
    """Simple status endpoint for uptime checks."""
    return {"status": "Dev Studio Running"}
