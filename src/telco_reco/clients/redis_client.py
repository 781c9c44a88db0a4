"""
@File       : redis_client.py
@Description: Redis client for recommendation history and statistics.

@Time       : 2026/01/13 13:30
@Author     : hcy18
"""
from typing import Callable, Dict, List, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import WatchError
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from telco_reco.config.settings import Settings, get_settings
from telco_reco.utils.logger import app_logger as logger


class RedisClient:
    """Redis client wrapper for recommendation history lists and per-algorithm counters."""

    _instance: Optional["RedisClient"] = None

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.redis: Optional[aioredis.Redis] = None
        self.prefix = "recommendation_history:"
        self.stats_prefix = "recommendation_stats:"
        self.stats_users_key = "recommendation_stats_users"

    @classmethod
    def get_instance(cls) -> "RedisClient":
        """获取 Redis 客户端单例."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    async def connect(self) -> None:
        """连接 Redis."""
        try:
            self.redis = aioredis.from_url(
                self.settings.redis_url,
                password=self.settings.redis_password,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self.settings.redis_max_connections,
            )
            await self.redis.ping()
            logger.info("Redis 连接成功")
        except Exception as e:
            logger.error(f"Redis 连接失败: {e}", exc_info=True)
            raise

    async def close(self) -> None:
        """关闭 Redis 连接."""
        if self.redis:
            await self.redis.aclose()
            logger.info("Redis 连接已关闭")

    def _key(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def _require(self) -> aioredis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis 未连接")
        return self.redis

    async def push_history(self, user_id: str, value: str, max_items: int, ttl: int) -> None:
        """
        写入一条推荐历史（最新的在最前），并裁剪长度、刷新过期时间.

        Args:
            user_id: 用户ID
            value: 序列化后的历史记录
            max_items: 保留条数
            ttl: 过期时间（秒）
        """
        key = self._key(user_id)
        async with self._require().pipeline(transaction=False) as pipe:
            pipe.lpush(key, value)
            pipe.ltrim(key, 0, max_items - 1)
            pipe.expire(key, ttl)
            await pipe.execute()
        logger.info(f"保存推荐历史到 Redis: user_id={user_id}")

    async def get_history(self, user_id: str, start: int, stop: int) -> List[str]:
        """按下标区间读取推荐历史（闭区间，与 LRANGE 一致）."""
        return await self._require().lrange(self._key(user_id), start, stop)

    async def count_history(self, user_id: str) -> int:
        """历史条数."""
        return await self._require().llen(self._key(user_id))

    @retry(retry=retry_if_exception_type(WatchError), stop=stop_after_attempt(3), reraise=True)
    async def update_history(self, user_id: str, update: Callable[[str], Optional[str]]) -> bool:
        """
        原地改写用户历史中的一条记录（WATCH 乐观锁，冲突时重试）.

        Args:
            user_id: 用户ID
            update: 对每条记录调用，返回新值表示命中并改写，返回 None 表示跳过

        Returns:
            是否命中
        """
        key = self._key(user_id)
        async with self._require().pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            values = await pipe.lrange(key, 0, -1)
            for index, raw in enumerate(values):
                updated = update(raw)
                if updated is None:
                    continue
                pipe.multi()
                pipe.lset(key, index, updated)
                await pipe.execute()
                return True
        return False

    async def incr_stats(self, algorithm: str, increments: Dict[str, float], user_id: Optional[str] = None) -> None:
        """累加某个算法提示下的统计计数（HINCRBYFLOAT），可选地记录用户."""
        key = f"{self.stats_prefix}{algorithm}"
        async with self._require().pipeline(transaction=True) as pipe:
            for field, amount in increments.items():
                pipe.hincrbyfloat(key, field, amount)
            if user_id:
                pipe.sadd(self.stats_users_key, user_id)
            await pipe.execute()

    async def get_stats(self, algorithms: List[str]) -> Tuple[Dict[str, Dict[str, str]], int]:
        """读取各算法提示的统计计数与用户数."""
        async with self._require().pipeline(transaction=False) as pipe:
            for algorithm in algorithms:
                pipe.hgetall(f"{self.stats_prefix}{algorithm}")
            pipe.scard(self.stats_users_key)
            results = await pipe.execute()
        return dict(zip(algorithms, results[:-1])), int(results[-1])


def get_redis_client() -> RedisClient:
    """获取 Redis 客户端单例."""
    return RedisClient.get_instance()
