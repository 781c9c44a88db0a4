import pytest

from conftest import make_item
from telco_reco.schemas.catalog_schema import Category
from telco_reco.schemas.recommendation_schema import Provenance, RecommendationEntry
from telco_reco.schemas.user_schema import BudgetTier, UsageType, UserProfile
from telco_reco.services.fallback_filler import FallbackFiller


def _entry(item_id: str, score: float) -> RecommendationEntry:
    return RecommendationEntry(catalog_item_id=item_id, final_score=score, reason="model",
                               provenance=Provenance.PRIMARY, source_label="Data Booster")


def test_fills_preferred_categories_first_then_rest(policy, mixed_catalog):
    current = [_entry("data-10gb", 0.9), _entry("voice-300", 0.873)]
    profile = UserProfile(usage_type=UsageType.DATA)

    added = FallbackFiller(policy).fill(current, mixed_catalog, profile, 3)

    assert [e.catalog_item_id for e in added] == ["stream-music", "data-25gb", "combo-mini"]
    assert [e.final_score for e in added] == pytest.approx([0.70, 0.625, 0.55])
    assert all(e.provenance == Provenance.FALLBACK for e in added)
    assert added[1].reason == "Popular data package for data users like you"
    assert added[2].reason == "Popular combo package for balanced usage"


def test_never_reuses_ids_and_caps_at_universe(policy, mixed_catalog):
    current = [_entry("data-10gb", 0.9)]
    added = FallbackFiller(policy).fill(current, mixed_catalog, UserProfile(), 50)

    ids = [e.catalog_item_id for e in added]
    assert len(ids) == len(set(ids)) == len(mixed_catalog) - 1
    assert "data-10gb" not in ids


def test_scores_stay_below_existing_minimum(policy, mixed_catalog):
    current = [_entry("data-10gb", 0.9), _entry("voice-300", 0.4)]
    added = FallbackFiller(policy).fill(current, mixed_catalog, UserProfile(), 4)

    assert added
    assert all(e.final_score < 0.4 for e in added)
    scores = [e.final_score for e in added]
    assert scores == sorted(scores, reverse=True)


def test_scores_within_band_without_existing_entries(policy, mixed_catalog):
    added = FallbackFiller(policy).fill([], mixed_catalog, UserProfile(), 5)
    assert len(added) == 5
    assert all(policy.fallback_score_min <= e.final_score <= policy.fallback_score_max for e in added)
    assert added[0].final_score == pytest.approx(policy.fallback_score_max)
    assert added[-1].final_score == pytest.approx(policy.fallback_score_min)


def test_large_pool_is_narrowed_by_budget(policy):
    catalog = [
        make_item("combo-cheap-1", Category.COMBO, 10_000, purchase_count=500),
        make_item("combo-cheap-2", Category.COMBO, 20_000, purchase_count=500),
        make_item("combo-cheap-3", Category.COMBO, 30_000, purchase_count=500),
        make_item("combo-premium", Category.COMBO, 300_000, purchase_count=10),
        make_item("voice-premium", Category.VOICE, 120_000, purchase_count=5),
    ]
    profile = UserProfile(usage_type=UsageType.VOICE, budget=BudgetTier.HIGH)

    added = FallbackFiller(policy).fill([], catalog, profile, 2)

    assert [e.catalog_item_id for e in added] == ["combo-premium", "voice-premium"]


def test_small_pool_is_not_narrowed_by_budget(policy):
    catalog = [
        make_item("combo-cheap", Category.COMBO, 10_000, purchase_count=500),
        make_item("combo-premium", Category.COMBO, 300_000, purchase_count=10),
    ]
    profile = UserProfile(usage_type=UsageType.SMS, budget=BudgetTier.HIGH)

    added = FallbackFiller(policy).fill([], catalog, profile, 2)

    assert {e.catalog_item_id for e in added} == {"combo-cheap", "combo-premium"}


def test_relevance_components(policy):
    filler = FallbackFiller(policy)
    item = make_item("x", Category.DATA, 40_000, purchase_count=1_000)
    # 3 (分类) + 2 (热度封顶) + 2 (预算) + 1 (低价)
    assert filler.relevance(item, [Category.DATA], BudgetTier.LOW) == pytest.approx(8.0)
    assert filler.relevance(item, [Category.VOICE], None) == pytest.approx(3.0)


def test_zero_shortfall_or_empty_catalog(policy, mixed_catalog):
    filler = FallbackFiller(policy)
    assert filler.fill([], mixed_catalog, UserProfile(), 0) == []
    assert filler.fill([], [], UserProfile(), 3) == []
