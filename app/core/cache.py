import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from redis.asyncio import Redis

from app.core.constants import RULES_CACHE_KEY_TEMPLATE, RULES_CACHE_VERSION_KEY

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-backed cache for active scoring rule sets.

    Cached sets live under a key that embeds a version counter.  Bumping
    the counter after any rule change orphans every cached set at once;
    the orphans expire through their TTL.

    If *redis_client* is ``None`` (Redis unavailable) every read misses
    and every write is dropped, so callers never check for ``None``.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    @property
    def is_available(self) -> bool:
        return self._redis is not None

    async def _run(
        self, command: str, key: str, call: Callable[[], Awaitable[Any]]
    ) -> Any:
        if self._redis is None:
            return None
        try:
            return await call()
        except Exception:
            logger.warning("Redis %s failed for key %s", command, key)
            return None

    # ------------------------------------------------------------------
    # Version counter
    # ------------------------------------------------------------------

    async def rules_version(self) -> str:
        key = RULES_CACHE_VERSION_KEY
        version = await self._run("GET", key, lambda: self._redis.get(key))
        return "0" if version is None else str(version)

    async def bump_rules_version(self) -> Optional[int]:
        """Invalidate every cached rule set.

        Returns the new version, or ``None`` if Redis is unavailable.
        """
        key = RULES_CACHE_VERSION_KEY
        return await self._run("INCR", key, lambda: self._redis.incr(key))

    # ------------------------------------------------------------------
    # Rule sets
    # ------------------------------------------------------------------

    @staticmethod
    def _rule_set_key(version: str, lead_type: str, trigger: str) -> str:
        return RULES_CACHE_KEY_TEMPLATE.format(
            version=version, lead_type=lead_type, trigger=trigger
        )

    async def get_rule_set(
        self, version: str, lead_type: str, trigger: str
    ) -> Optional[List[Dict[str, Any]]]:
        """Return the rule dicts cached under *version*, or ``None``.

        Callers read the version once and pass the same value to
        ``set_rule_set``, so rules fetched before a bump are never stored
        under the bumped version.
        """
        if self._redis is None:
            return None
        key = self._rule_set_key(version, lead_type, trigger)
        raw = await self._run("GET", key, lambda: self._redis.get(key))
        if raw is None:
            return None
        try:
            cached = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Invalid JSON in cache key %s", key)
            return None
        if not isinstance(cached, list):
            logger.warning("Cache key %s does not hold a rule list", key)
            return None
        return cached

    async def set_rule_set(
        self,
        version: str,
        lead_type: str,
        trigger: str,
        rules: List[Dict[str, Any]],
        ttl: int | None = None,
    ) -> None:
        if self._redis is None:
            return
        key = self._rule_set_key(version, lead_type, trigger)
        payload = json.dumps(rules, default=str)
        if ttl:
            await self._run("SETEX", key, lambda: self._redis.setex(key, ttl, payload))
        else:
            await self._run("SET", key, lambda: self._redis.set(key, payload))
