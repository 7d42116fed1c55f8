from slowapi import Limiter
from slowapi.util import get_remote_address
from loguru import logger

from app.core.config import settings


def get_real_ip(request):
    """
    Client IP behind a proxy: leftmost X-Forwarded-For entry, then X-Real-IP,
    then the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


def _build_limiter() -> Limiter:
    enabled = settings.RATE_LIMIT_ENABLED
    if settings.REDIS_URL:
        try:
            logger.info("Initializing rate limiter with Redis storage")
            return Limiter(
                key_func=get_real_ip,
                storage_uri=settings.REDIS_URL,
                strategy="fixed-window",
                enabled=enabled,
            )
        except Exception:
            logger.exception("Redis rate-limit storage unavailable, falling back to memory")
    return Limiter(key_func=get_real_ip, enabled=enabled)


limiter = _build_limiter()
