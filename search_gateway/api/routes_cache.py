import logging

from fastapi import APIRouter, Request
from redis.exceptions import RedisError

from search_gateway.core.errors import BackendUnavailableError
from search_gateway.models.schemas import CacheResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/redis", tags=["cache"])

DEMO_KEY = "key"
DEMO_VALUE = "value"


@router.get("", response_model=CacheResponse)
def redis_roundtrip(request: Request) -> CacheResponse:
    client = request.app.state.redis
    try:
        client.set(DEMO_KEY, DEMO_VALUE)
    except RedisError as exc:
        logger.error("redis set failed: %s", exc)
        raise BackendUnavailableError("Failed to insert in redis") from exc
    try:
        value = client.get(DEMO_KEY)
    except RedisError as exc:
        logger.error("redis get failed: %s", exc)
        raise BackendUnavailableError("Failed to get from redis") from exc
    return CacheResponse(key=value)
