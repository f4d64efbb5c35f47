"""Request rate limiting for the public read endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from matchstate.config import get_settings

settings = get_settings()

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

# Applied per endpoint, e.g. "120/minute"
READ_RATE_LIMIT = settings.RATE_LIMIT_PER_MINUTE
