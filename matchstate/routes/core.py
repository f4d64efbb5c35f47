"""Core routes: health."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from matchstate.config import get_settings
from matchstate.security import READ_RATE_LIMIT, limiter

router = APIRouter(tags=["core"])
settings = get_settings()


class HealthResponse(BaseModel):
    status: str
    reporting_timezone: str


@router.get("/health", response_model=HealthResponse)
@limiter.limit(READ_RATE_LIMIT)
async def health_check(request: Request):
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        reporting_timezone=settings.REPORTING_TIMEZONE,
    )
