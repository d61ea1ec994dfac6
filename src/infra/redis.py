import logging

import redis

from src.config import get_settings

logger = logging.getLogger(__name__)


class _RedisHolder:
    client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """분석 결과 저장용 클라이언트 (문자열 디코딩)"""
    if _RedisHolder.client is None:
        settings = get_settings()
        _RedisHolder.client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return _RedisHolder.client


def ping_redis() -> bool:
    try:
        return bool(get_redis().ping())
    except redis.RedisError as e:
        logger.warning(f"Redis 연결 실패: {e}")
        return False


def close_redis() -> None:
    if _RedisHolder.client is not None:
        _RedisHolder.client.close()
        _RedisHolder.client = None


def set_redis(client: redis.Redis | None) -> None:
    _RedisHolder.client = client
