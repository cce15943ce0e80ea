import time
import redis
import structlog
from typing import Optional
from ..config import settings

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

REVOKED_PREFIX = "auth:revoked:"

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client

def revoke_token(claims: dict) -> bool:
    """Заносит jti в чёрный список до истечения токена"""
    jti = claims.get("jti")
    if not jti:
        return False
    ttl = int(claims.get("exp", 0) - time.time())
    if ttl <= 0:
        # токен и так уже протух
        return True
    try:
        get_redis().setex(f"{REVOKED_PREFIX}{jti}", ttl, "1")
        return True
    except Exception as exc:
        # Если Redis недоступен, просто логируем
        logger.warning("token_revoke_failed", jti=jti, error=str(exc))
        return False

def is_revoked(jti: str) -> bool:
    try:
        return bool(get_redis().exists(f"{REVOKED_PREFIX}{jti}"))
    except Exception as exc:
        logger.warning("token_revoke_check_failed", jti=jti, error=str(exc))
        return False
