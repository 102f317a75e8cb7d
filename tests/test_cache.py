from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import CacheService


class TestCacheService:
    @pytest.mark.asyncio
    async def test_without_redis_reads_miss_and_writes_are_dropped(self):
        cache = CacheService()

        assert cache.is_available is False
        assert await cache.rules_version() == "0"
        assert await cache.get_rule_set("0", "FIT", "On Lead Create") is None
        assert await cache.bump_rules_version() is None
        await cache.set_rule_set("0", "FIT", "On Lead Create", [{"id": 1}], ttl=60)

    @pytest.mark.asyncio
    async def test_rules_version_defaults_to_zero(self, mock_cache, mock_redis):
        assert await mock_cache.rules_version() == "0"
        mock_redis.get = AsyncMock(return_value="4")
        assert await mock_cache.rules_version() == "4"

    @pytest.mark.asyncio
    async def test_rule_set_is_stored_under_the_given_version(
        self, mock_cache, mock_redis
    ):
        mock_redis.get = AsyncMock(return_value="9")

        await mock_cache.set_rule_set("4", "Group", "Both", [{"id": 9}])

        mock_redis.set.assert_awaited_once_with(
            "scoring_rules:v4:Group:Both", '[{"id": 9}]'
        )

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_a_miss(self, mock_cache, mock_redis, caplog):
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await mock_cache.get_rule_set("0", "FIT", "On Lead Create") is None
        assert "Redis GET failed" in caplog.text

    @pytest.mark.asyncio
    async def test_non_list_payload_is_ignored(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value='{"id": 1}')

        assert await mock_cache.get_rule_set("0", "FIT", "On Lead Create") is None
