import pytest

from telco_reco.clients.classifier_client import build_feature_vector
from telco_reco.config.policy import RecommendationPolicy
from telco_reco.schemas.classifier_schema import OfferSource
from telco_reco.schemas.user_schema import BudgetTier, UsageStats, UsageType, UserProfile
from telco_reco.services.rule_based_scorer import RuleBasedScorer


def _score(policy, profile):
    return RuleBasedScorer(policy).score(profile, build_feature_vector(profile))


def test_data_user_with_streaming_interest(policy):
    offers = _score(policy, UserProfile(usage_type=UsageType.DATA, interests=["streaming"]))

    assert [o.label for o in offers] == ["Data Booster", "Streaming Partner Pack", "General Offer"]
    assert [o.confidence_score for o in offers] == pytest.approx([0.765, 0.7225, 0.595])
    assert [o.rank for o in offers] == [0, 1, 2]
    assert all(o.source == OfferSource.RULES for o in offers)


def test_voice_user_with_low_budget(policy):
    offers = _score(policy, UserProfile(usage_type=UsageType.VOICE, budget=BudgetTier.LOW))
    assert [o.label for o in offers] == ["Voice Bundle", "Top-up Promo", "General Offer"]


def test_traveler_gets_roaming_pass(policy):
    profile = UserProfile(usage=UsageStats(travel_score=0.8))
    labels = [o.label for o in _score(policy, profile)]
    assert "Roaming Pass" in labels


def test_scores_never_reach_genuine_confidence(policy):
    profile = UserProfile(usage_type=UsageType.DATA, budget=BudgetTier.HIGH, interests=["gaming", "streaming"],
                          usage=UsageStats(avg_call_duration=600, travel_score=0.9))
    offers = _score(policy, profile)
    assert offers
    assert all(o.confidence_score < 0.8 for o in offers)
    assert len(offers) <= policy.max_rule_offers
    assert len({o.label for o in offers}) == len(offers)


def test_cap_applies_even_without_scaling():
    policy = RecommendationPolicy(degraded_confidence_scale=1.0)
    offers = _score(policy, UserProfile(usage_type=UsageType.DATA))
    assert offers[0].confidence_score == pytest.approx(0.79)


def test_cap_must_stay_below_point_eight():
    with pytest.raises(ValueError):
        RecommendationPolicy(degraded_confidence_cap=0.8)
