import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one step, redis runs lua scripts atomically
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived checkout locks keyed by payment transaction id.
    Keeps two callbacks for the same payment from verifying and inserting
    at the same time. Expiry is left to redis (EX).
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(transaction_id: str) -> str:
        return f"checkout:{transaction_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, transaction_id: str, owner: str, ttl: int) -> bool:
        key = self._key(transaction_id)
        logger.info(f"Acquire lock {key} for {owner}")
        #SET checkout:imp_123:lock "user:7" NX EX 60
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release_checkout_lock(self, transaction_id: str, owner: str) -> bool:
        key = self._key(transaction_id)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
