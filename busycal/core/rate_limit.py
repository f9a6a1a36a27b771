"""Per-client rate limiting for link creation, using slowapi."""

from slowapi import Limiter
from starlette.requests import Request

from busycal.core.config import settings

_PROXY_HEADERS = ("CF-Connecting-IP", "X-Real-IP")


def client_address(request: Request) -> str:
    """Best-effort client IP, honouring the usual reverse-proxy headers."""
    for header in _PROXY_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.strip()

    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop

    return request.client.host if request.client else "127.0.0.1"


limiter = Limiter(key_func=client_address, enabled=settings.rate_limit_enabled)
