# diaglab/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError

from diaglab.domain.errors import CartBusy
from diaglab.utils.retry import redis_retry
from diaglab.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in lua, redis runs the script atomically
#so nobody can slip in between GET and DEL and we never drop someone else's lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Per-user cart lock.
    Serialises add/increment/remove and checkout for one user, so two requests
    cannot both read the same quantity and write back a lost update.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def cart_key(user_id: str) -> str:
        return f"cart:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: str, owner: str, ttl: int) -> bool:
        key = self.cart_key(user_id)
        logger.debug(f"Acquire lock {key} for {owner}")
        #SET cart:<user>:lock <owner> NX EX <ttl>, expires on its own if we crash
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release_cart_lock(self, user_id: str, owner: str) -> bool:
        key = self.cart_key(user_id)
        logger.debug(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)


@contextmanager
def locked_cart(lock_service: LockService, user_id: str, ttl: int = CART_LOCK_TTL_SECONDS):
    owner = uuid.uuid4().hex

    if not lock_service.acquire_cart_lock(user_id, owner, ttl):
        logger.warning(f"Cart of user {user_id} is locked by another request")
        raise CartBusy()

    try:
        yield
    finally:
        try:
            lock_service.release_cart_lock(user_id, owner)
        except RedisError as e:
            # the TTL frees it anyway
            logger.warning(f"Failed to release cart lock for user {user_id}: {e}")
