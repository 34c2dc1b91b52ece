from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

log = logging.getLogger(__name__)


def make_redis_client(
    redis_url: str,
    *,
    connect_timeout_sec: float = 2.0,
    op_timeout_sec: float = 2.0,
    retries: int = 2,
) -> Redis:
    """Async client for the metadata cache. Values are JSON strings, so responses are decoded."""
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=connect_timeout_sec,
        socket_timeout=op_timeout_sec,
        socket_keepalive=True,
        health_check_interval=30,
        retry=Retry(ExponentialBackoff(cap=0.25, base=0.02), retries=retries),
        retry_on_error=[RedisConnectionError, RedisTimeoutError],
    )


async def ping(client: Redis) -> bool:
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as e:
        log.warning("Redis ping failed: %s", e)
        return False
