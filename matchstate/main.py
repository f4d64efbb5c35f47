"""FastAPI application for the live match-status service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from matchstate.config import get_settings
from matchstate.database import close_db, init_db
from matchstate.routes.api import router as api_router
from matchstate.routes.core import router as core_router
from matchstate.security import limiter

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting match-status API (reporting tz={settings.REPORTING_TIMEZONE})...")
    await init_db()
    yield
    logger.info("Shutting down match-status API...")
    await close_db()


app = FastAPI(
    title="Match State API",
    description="Live match reconciliation and correlation rankings",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include routers
app.include_router(core_router)
app.include_router(api_router)
