import redis


def get_redis_client(redis_url: str) -> redis.Redis:
    """Redis client used for registration locks and rate limiting."""
    return redis.from_url(redis_url, decode_responses=True)
