"""
测试公共 fixture：目录商品工厂、默认策略、假分类模型.
"""
from typing import Iterable, List, Optional

import pytest

from telco_reco.config.policy import RecommendationPolicy
from telco_reco.provider.catalog_provider import CatalogProvider
from telco_reco.schemas.catalog_schema import CatalogItem, Category
from telco_reco.schemas.classifier_schema import FeatureVector, OfferSource, RankedOffer
from telco_reco.schemas.user_schema import UserProfile


def make_item(item_id: str, category: Category = Category.DATA, price: int = 50_000,
              target_offer: Optional[str] = None, purchase_count: int = 0, is_active: bool = True) -> CatalogItem:
    return CatalogItem(
        id=item_id,
        name=item_id,
        category=category,
        price=price,
        target_offer=target_offer,
        purchase_count=purchase_count,
        is_active=is_active,
    )


def make_offer(label: str, score: float, rank: int, source: OfferSource = OfferSource.CLASSIFIER) -> RankedOffer:
    return RankedOffer(label=label, confidence_score=score, explanation=f"because {label}", rank=rank, source=source)


class StaticCatalogProvider(CatalogProvider):
    """内存中的固定目录."""

    def __init__(self, items: Iterable[CatalogItem]):
        self._items = list(items)

    async def list_active_items(self) -> List[CatalogItem]:
        return [item for item in self._items if item.is_active]


class FakeClassifier:
    """按固定列表返回的分类模型，记录调用次数."""

    def __init__(self, offers: List[RankedOffer]):
        self.offers = offers
        self.calls = 0

    async def score(self, features: FeatureVector, profile: UserProfile) -> List[RankedOffer]:
        self.calls += 1
        return list(self.offers)


@pytest.fixture
def policy() -> RecommendationPolicy:
    return RecommendationPolicy()


@pytest.fixture
def mixed_catalog() -> List[CatalogItem]:
    return [
        make_item("data-10gb", Category.DATA, 30_000, "Data Booster", 450),
        make_item("data-25gb", Category.DATA, 60_000, "Data Booster", 320),
        make_item("voice-300", Category.VOICE, 30_000, "Voice Bundle", 150),
        make_item("combo-mini", Category.COMBO, 35_000, None, 480),
        make_item("combo-family", Category.COMBO, 200_000, "Family Plan Offer", 150),
        make_item("stream-music", Category.STREAMING, 40_000, "Streaming Partner Pack", 280),
        make_item("roam-asia", Category.ROAMING, 150_000, "Roaming Pass", 60),
        make_item("sms-500", Category.SMS, 5_000, None, 180),
    ]
