"""
@File       : history_store.py
@Description: 推荐历史存储（尽力而为的旁路写入）、交互/反馈回写与统计

@Time       : 2026/01/13 13:50
@Author     : hcy18
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from telco_reco.clients.redis_client import RedisClient
from telco_reco.schemas.recommendation_schema import (Algorithm, AlgorithmStats, HistoryEntry, HistoryRecord,
                                                      Interaction, InteractionAction, RecommendationEntry,
                                                      RecommendationStats)
from telco_reco.utils.exceptions import HistoryPersistError
from telco_reco.utils.logger import app_logger as logger

# 统计计数字段（redis hash field）
STAT_COUNT = "count"
STAT_ELAPSED_MS_SUM = "elapsedMsSum"
STAT_ACCURACY_SUM = "accuracySum"
STAT_ACCURACY_COUNT = "accuracyCount"


class HistoryStore(ABC):
    """推荐历史存储"""

    @abstractmethod
    async def record(self, user_id: str, recommendation_id: str, entries: List[RecommendationEntry],
                     algorithm: Algorithm, elapsed_ms: int) -> None:
        """记录一次推荐结果，失败抛出 HistoryPersistError"""
        pass

    @abstractmethod
    async def list(self, user_id: str, page_number: int, page_size: int) -> Tuple[List[HistoryRecord], int]:
        """分页读取推荐历史（最新的在前），返回 (当前页, 总数)"""
        pass

    @abstractmethod
    async def track_interaction(self, user_id: str, recommendation_id: str, catalog_item_id: str,
                                action: InteractionAction) -> Optional[HistoryRecord]:
        """追加一次交互，返回更新后的记录；记录不存在返回 None"""
        pass

    @abstractmethod
    async def submit_feedback(self, user_id: str, recommendation_id: str, accuracy: float,
                              comment: Optional[str] = None) -> Optional[HistoryRecord]:
        """写入反馈准确度（覆盖旧值），返回更新后的记录；记录不存在返回 None"""
        pass

    @abstractmethod
    async def stats(self) -> RecommendationStats:
        """按算法提示汇总推荐次数、平均耗时、平均准确度"""
        pass


class RedisHistoryStore(HistoryStore):
    """
    基于 Redis 的推荐历史.

    - 每个用户一个 list，元素是驼峰 JSON 的 HistoryRecord，最新的在前
    - 统计是每个算法提示一个 hash 的累计计数，不随历史裁剪而减少
    """

    def __init__(self, redis_client: RedisClient, max_items: int = 50, ttl: int = 30 * 24 * 3600,
                 model_version: str = "v1.0"):
        self.redis_client = redis_client
        self.max_items = max_items
        self.ttl = ttl
        self.model_version = model_version

    async def record(self, user_id: str, recommendation_id: str, entries: List[RecommendationEntry],
                     algorithm: Algorithm, elapsed_ms: int) -> None:
        history = HistoryRecord(
            recommendation_id=recommendation_id,
            user_id=user_id,
            algorithm=algorithm,
            elapsed_ms=elapsed_ms,
            model_version=self.model_version,
            created_at=datetime.now(timezone.utc),
            entries=[
                HistoryEntry(catalog_item_id=entry.catalog_item_id, score=entry.final_score, reason=entry.reason)
                for entry in entries
            ],
        )
        try:
            await self.redis_client.push_history(
                user_id=user_id,
                value=history.model_dump_json(by_alias=True),
                max_items=self.max_items,
                ttl=self.ttl,
            )
            await self.redis_client.incr_stats(
                algorithm.value,
                {STAT_COUNT: 1, STAT_ELAPSED_MS_SUM: elapsed_ms},
                user_id=user_id,
            )
        except Exception as e:
            raise HistoryPersistError(f"推荐历史写入失败: user_id={user_id}") from e

    async def list(self, user_id: str, page_number: int, page_size: int) -> Tuple[List[HistoryRecord], int]:
        start = (page_number - 1) * page_size
        stop = start + page_size - 1
        total = await self.redis_client.count_history(user_id)
        raw_records = await self.redis_client.get_history(user_id, start, stop)

        records = []
        for raw in raw_records:
            try:
                records.append(HistoryRecord.model_validate_json(raw))
            except ValueError:
                logger.warning(f"无效的推荐历史记录，已跳过: user_id={user_id}")
        return records, total

    async def track_interaction(self, user_id: str, recommendation_id: str, catalog_item_id: str,
                                action: InteractionAction) -> Optional[HistoryRecord]:
        def add_interaction(record: HistoryRecord) -> None:
            record.interactions.append(
                Interaction(catalog_item_id=catalog_item_id, action=action, timestamp=datetime.now(timezone.utc))
            )

        return await self._update_record(user_id, recommendation_id, add_interaction)

    async def submit_feedback(self, user_id: str, recommendation_id: str, accuracy: float,
                              comment: Optional[str] = None) -> Optional[HistoryRecord]:
        previous: Dict[str, Optional[float]] = {}

        def set_accuracy(record: HistoryRecord) -> None:
            previous["accuracy"] = record.accuracy
            record.accuracy = accuracy
            record.feedback_comment = comment

        updated = await self._update_record(user_id, recommendation_id, set_accuracy)
        if updated is None:
            return None

        # 重复反馈只替换准确度，不增加反馈次数
        old_accuracy = previous.get("accuracy")
        increments = {STAT_ACCURACY_SUM: accuracy - (old_accuracy or 0.0),
                      STAT_ACCURACY_COUNT: 0 if old_accuracy is not None else 1}
        try:
            await self.redis_client.incr_stats(updated.algorithm.value, increments)
        except Exception as e:
            raise HistoryPersistError(f"反馈统计写入失败: recommendation_id={recommendation_id}") from e
        return updated

    async def stats(self) -> RecommendationStats:
        algorithms = [algorithm.value for algorithm in Algorithm]
        counters, total_users = await self.redis_client.get_stats(algorithms)

        by_algorithm = []
        for algorithm in Algorithm:
            counter = counters.get(algorithm.value) or {}
            count = int(float(counter.get(STAT_COUNT, 0)))
            if count == 0:
                continue
            feedback_count = int(float(counter.get(STAT_ACCURACY_COUNT, 0)))
            accuracy_sum = float(counter.get(STAT_ACCURACY_SUM, 0))
            by_algorithm.append(AlgorithmStats(
                algorithm=algorithm,
                count=count,
                avg_response_time_ms=round(float(counter.get(STAT_ELAPSED_MS_SUM, 0)) / count, 2),
                avg_accuracy=round(accuracy_sum / feedback_count, 4) if feedback_count else None,
                feedback_count=feedback_count,
            ))

        return RecommendationStats(
            total_recommendations=sum(stats.count for stats in by_algorithm),
            total_users=total_users,
            by_algorithm=by_algorithm,
        )

    async def _update_record(self, user_id: str, recommendation_id: str,
                             mutate: Callable[[HistoryRecord], None]) -> Optional[HistoryRecord]:
        """在用户自己的历史中按推荐ID查找并改写记录."""
        updated: List[HistoryRecord] = []

        def apply(raw: str) -> Optional[str]:
            try:
                record = HistoryRecord.model_validate_json(raw)
            except ValueError:
                return None
            if record.recommendation_id != recommendation_id:
                return None
            mutate(record)
            updated.append(record)
            return record.model_dump_json(by_alias=True)

        try:
            found = await self.redis_client.update_history(user_id, apply)
        except Exception as e:
            raise HistoryPersistError(f"推荐历史更新失败: recommendation_id={recommendation_id}") from e

        if not found:
            logger.warning(f"推荐记录不存在: user_id={user_id}, recommendation_id={recommendation_id}")
            return None
        return updated[-1]
