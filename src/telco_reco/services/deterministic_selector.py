"""
@File       : deterministic_selector.py
@Description: 从候选集合中确定性地选出一个商品

@Time       : 2026/01/13 17:50
@Author     : hcy18
"""
from typing import Callable, List, Optional, Tuple

from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.schemas.user_schema import BudgetTier


def _sort_key(budget: Optional[BudgetTier]) -> Callable[[CatalogItem], Tuple]:
    # 最后都按 id 升序，保证完全相同的价格和热度也有唯一结果
    if budget == BudgetTier.LOW:
        return lambda item: (item.price, item.id)
    if budget == BudgetTier.HIGH:
        return lambda item: (-item.purchase_count, item.price, item.id)
    return lambda item: (item.price, -item.purchase_count, item.id)


def select_one(items: List[CatalogItem], budget: Optional[BudgetTier]) -> CatalogItem:
    """
    选出一个商品，没有任何随机性.

    - low: 价格升序
    - high: 热度降序，其次价格升序
    - 其它: 价格升序，其次热度降序

    Raises:
        ValueError: 候选为空
    """
    if not items:
        raise ValueError("候选商品为空，无法选择")
    return min(items, key=_sort_key(budget))
