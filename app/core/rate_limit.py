"""Per-client limits on the checkout endpoints (/cart/quote, /orders) with slowapi."""
from fastapi import Request
from slowapi import Limiter

from .config import settings

_UNKNOWN_CLIENT = "127.0.0.1"


def client_ip(request: Request) -> str:
    """
    Limiter key. Behind a proxy the left-most X-Forwarded-For entry is the shopper;
    with TRUST_FORWARDED_FOR off the header is ignored since any client can set it.
    """
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    if request.client and request.client.host:
        return request.client.host
    return _UNKNOWN_CLIENT


def checkout_limit() -> str:
    return f"{settings.rate_limit_per_minute}/minute"


limiter = Limiter(key_func=client_ip)
