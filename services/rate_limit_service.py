import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import settings

logger = logging.getLogger(__name__)


def get_identifier(request):
    """Get identifier for rate limiting"""
    # Use IP address as default identifier
    return get_remote_address(request)


# Initialize limiter
limiter = Limiter(key_func=get_identifier, storage_uri=settings.RATE_LIMIT_STORAGE_URI)


async def check_storage(storage_uri: Optional[str] = None) -> Dict[str, Any]:
    """Report whether the rate-limit counters' backing store is reachable"""
    storage_uri = storage_uri or settings.RATE_LIMIT_STORAGE_URI
    if not storage_uri.startswith(("redis://", "rediss://")):
        return {"backend": storage_uri.split("://", 1)[0], "available": True}

    client = redis.from_url(storage_uri)
    try:
        await client.ping()
        return {"backend": "redis", "available": True}
    except redis.RedisError as e:
        logger.error(f"Rate limit storage unavailable: {str(e)}")
        return {"backend": "redis", "available": False}
    finally:
        await client.aclose()
