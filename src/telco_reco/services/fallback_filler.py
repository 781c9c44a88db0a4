"""
@File       : fallback_filler.py
@Description: 推荐数量不足时，按相关性从剩余目录中补足

@Time       : 2026/01/13 18:10
@Author     : hcy18
"""
from typing import List, Optional, Sequence

from telco_reco.config.policy import RecommendationPolicy
from telco_reco.schemas.catalog_schema import CatalogItem, Category, OfferLabel
from telco_reco.schemas.recommendation_schema import Provenance, RecommendationEntry
from telco_reco.schemas.user_schema import BudgetTier, UsageType, UserProfile
from telco_reco.services.budget_filter import filter_by_range
from telco_reco.utils.logger import app_logger as logger


class FallbackFiller:
    """
    补足逻辑.

    候选范围是未被使用的上架商品。优先取符合使用类型的分类（候选较多时再按预算收窄），
    仍然不够时再用剩余商品兜底，保证结果数量达到 ``min(limit, 上架商品数)``。
    补足条目的分数落在固定区间内，并且严格低于已有条目的最低分。
    """

    def __init__(self, policy: RecommendationPolicy):
        self.policy = policy

    def fill(
        self,
        current_entries: Sequence[RecommendationEntry],
        catalog: Sequence[CatalogItem],
        profile: UserProfile,
        shortfall: int,
    ) -> List[RecommendationEntry]:
        """
        计算补足条目.

        Args:
            current_entries: 已经选出的条目
            catalog: 本次请求的目录快照
            profile: 用户画像
            shortfall: 还差多少条

        Returns:
            新增的补足条目（不包含 current_entries）
        """
        if shortfall <= 0:
            return []

        used_ids = {entry.catalog_item_id for entry in current_entries}
        universe = [item for item in catalog if item.is_active and item.id not in used_ids]
        if not universe:
            logger.info("补足阶段没有可用商品")
            return []

        preferred_categories = self._preferred_categories(profile)
        preferred = self._preferred_pool(universe, preferred_categories, profile.budget)

        chosen = self._rank(preferred, preferred_categories, profile.budget)[:shortfall]
        if len(chosen) < shortfall:
            chosen_ids = {item.id for item in chosen}
            rest = [item for item in universe if item.id not in chosen_ids]
            chosen += self._rank(rest, preferred_categories, profile.budget)[:shortfall - len(chosen)]

        scores = self._score_band(len(chosen), [entry.final_score for entry in current_entries])
        entries = [
            RecommendationEntry(
                catalog_item_id=item.id,
                final_score=score,
                reason=self._reason(item, profile),
                provenance=Provenance.FALLBACK,
                source_label=item.target_offer or OfferLabel.GENERAL_OFFER.value,
                item=item,
            )
            for item, score in zip(chosen, scores)
        ]

        logger.info(
            f"补足完成: needed={shortfall}, added={len(entries)}, "
            f"preferred_pool={len(preferred)}, universe={len(universe)}"
        )
        return entries

    def _preferred_categories(self, profile: UserProfile) -> List[Category]:
        return self.policy.usage_categories.get(profile.usage_type) or self.policy.default_fallback_categories

    def _preferred_pool(self, universe: List[CatalogItem], categories: List[Category],
                        budget: Optional[BudgetTier]) -> List[CatalogItem]:
        pool = [item for item in universe if item.category in categories]
        if budget is not None and len(pool) > self.policy.fallback_budget_threshold:
            in_budget = filter_by_range(pool, budget, self.policy.fallback_budget_ranges)
            if in_budget:
                pool = in_budget
        return pool

    def relevance(self, item: CatalogItem, categories: List[Category], budget: Optional[BudgetTier]) -> float:
        """补足候选的相关性得分（加法组合）."""
        weights = self.policy.relevance_weights
        score = 0.0
        if item.category in categories:
            score += weights.category_match
        score += min(item.purchase_count / self.policy.popularity_norm, 1.0) * weights.popularity
        price_range = self.policy.fallback_budget_ranges.get(budget) if budget is not None else None
        if price_range is not None and price_range.contains(item.price):
            score += weights.budget_match
        if item.price <= self.policy.low_price_threshold:
            score += weights.low_price
        return score

    def _rank(self, items: List[CatalogItem], categories: List[Category],
              budget: Optional[BudgetTier]) -> List[CatalogItem]:
        return sorted(
            items,
            key=lambda item: (-self.relevance(item, categories, budget), -item.purchase_count, item.price, item.id),
        )

    def _score_band(self, count: int, existing_scores: List[float]) -> List[float]:
        """在 [fallback_score_min, fallback_score_max] 内线性递减，上限压到已有最低分之下."""
        if count <= 0:
            return []

        ceiling = self.policy.fallback_score_max
        if existing_scores:
            ceiling = min(ceiling, min(existing_scores) - self.policy.fallback_score_gap)
        ceiling = max(ceiling, 0.0)
        floor = min(self.policy.fallback_score_min, ceiling)

        if count == 1:
            return [round(ceiling, 4)]
        step = (ceiling - floor) / (count - 1)
        return [round(ceiling - step * i, 4) for i in range(count)]

    @staticmethod
    def _reason(item: CatalogItem, profile: UserProfile) -> str:
        if item.category == Category.DATA and profile.usage_type == UsageType.DATA:
            return "Popular data package for data users like you"
        if item.category == Category.VOICE and profile.usage_type == UsageType.VOICE:
            return "Popular voice package for frequent callers"
        if item.category == Category.STREAMING and "streaming" in profile.interests:
            return "Great for streaming enthusiasts"
        if item.category == Category.COMBO:
            return "Popular combo package for balanced usage"
        if profile.budget == BudgetTier.LOW and item.price < 100_000:
            return "Budget-friendly option within your range"
        if profile.budget == BudgetTier.HIGH and item.price > 100_000:
            return "Premium package with generous quotas"
        return "Popular choice among users"
