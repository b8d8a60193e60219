from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.shared.utils.logger import get_logger
from .config import settings
from .errors import RateLimited

logger = get_logger(__name__)


class RedisManager:
    _instance = None

    @classmethod
    def get_client(cls) -> Redis:
        if cls._instance is None:
            cls._instance = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        return cls._instance

    @classmethod
    def set_client(cls, client):
        cls._instance = client


class RateLimiter:
    """Fixed-window counter: INCR the window key, EXPIRE it on first hit."""

    def __init__(self, prefix: str, limit: int, window_seconds: int):
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds

    async def hit(self, subject: str):
        key = f"ratelimit:{self.prefix}:{subject}"
        client = RedisManager.get_client()
        try:
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, self.window_seconds)
        except (RedisError, OSError) as e:
            # Limiter is advisory; Redis outages must not block core flows.
            logger.warning(f"Rate limiter unavailable for {self.prefix}: {e}")
            return
        if count > self.limit:
            raise RateLimited(f"Limit of {self.limit} reached, try again later")


connection_requests_limiter = RateLimiter(
    "connection-requests", settings.MAX_CONNECTION_REQUESTS_PER_DAY, 86400
)
messages_limiter = RateLimiter("messages", settings.MAX_MESSAGES_PER_MINUTE, 60)


async def check_connection() -> bool:
    try:
        client = RedisManager.get_client()
        await client.ping()
        return True
    except Exception:
        return False
