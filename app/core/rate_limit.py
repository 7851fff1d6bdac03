"""IP bazlı rate limiting (SlowAPI); proxy (X-Forwarded-For) destekli."""
from fastapi import Request

from slowapi import Limiter

from .config import settings


def _get_client_ip(request: Request) -> str:
    """Proxy arkasında gerçek istemci IP (Render, Nginx, Vercel)."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


# Genel limit SlowAPIMiddleware ile tüm uçlara; /api/subscribe ayrıca kendi limitini taşır
limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
)
