"""Rate limiter shared by the unauthenticated auth endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from rbac_console.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)
