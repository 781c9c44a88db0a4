"""
@File       : candidate_resolver.py
@Description: 根据 offer 标签在目录快照中查找候选商品

@Time       : 2026/01/13 17:20
@Author     : hcy18
"""
from typing import Iterable, List, Set

from telco_reco.config.policy import RecommendationPolicy
from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.utils.logger import app_logger as logger


class CandidateResolver:
    """
    两步查找候选商品:

    1. ``target_offer`` 与标签完全一致的商品
    2. 找不到时按标签 → 分类映射表取同分类的商品

    都找不到返回空列表，调用方继续处理下一个 offer。
    """

    def __init__(self, policy: RecommendationPolicy):
        self.policy = policy

    def resolve(self, catalog: Iterable[CatalogItem], label: str, excluded_ids: Set[str]) -> List[CatalogItem]:
        available = [item for item in catalog if item.is_active and item.id not in excluded_ids]

        exact = [item for item in available if item.target_offer == label]
        if exact:
            logger.debug(f"标签精确匹配: label={label}, count={len(exact)}")
            return exact

        category = self.policy.label_categories.get(label)
        if category is None:
            logger.info(f"未知的 offer 标签，跳过: label={label}")
            return []

        by_category = [item for item in available if item.category == category]
        logger.debug(f"按分类匹配: label={label}, category={category.value}, count={len(by_category)}")
        return by_category
