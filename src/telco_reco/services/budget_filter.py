"""
@File       : budget_filter.py
@Description: 按预算档位过滤候选商品（软约束）

@Time       : 2026/01/13 17:35
@Author     : hcy18
"""
from typing import Dict, List, Optional

from telco_reco.config.policy import PriceRange, RecommendationPolicy
from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.schemas.user_schema import BudgetTier
from telco_reco.utils.logger import app_logger as logger


def filter_by_range(items: List[CatalogItem], budget: Optional[BudgetTier],
                    ranges: Dict[BudgetTier, PriceRange]) -> List[CatalogItem]:
    """按价格区间表过滤，不做放宽."""
    if budget is None or budget not in ranges:
        return list(items)
    price_range = ranges[budget]
    return [item for item in items if price_range.contains(item.price)]


class BudgetFilter:
    """预算过滤：过滤后为空而输入不为空时，退回原始输入."""

    def __init__(self, policy: RecommendationPolicy):
        self.policy = policy

    def filter(self, items: List[CatalogItem], budget: Optional[BudgetTier]) -> List[CatalogItem]:
        filtered = filter_by_range(items, budget, self.policy.budget_ranges)
        if not filtered and items:
            logger.info(f"预算过滤后无候选，放宽预算限制: budget={budget.value}, candidates={len(items)}")
            return list(items)
        return filtered
