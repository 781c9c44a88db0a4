"""
@File       : rule_based_scorer.py
@Description: 分类模型不可用时的规则打分（降级模式）

@Time       : 2026/01/13 16:00
@Author     : hcy18
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from telco_reco.config.policy import RecommendationPolicy
from telco_reco.schemas.catalog_schema import OfferLabel
from telco_reco.schemas.classifier_schema import FeatureVector, OfferSource, RankedOffer
from telco_reco.schemas.user_schema import BudgetTier, UsageType, UserProfile
from telco_reco.utils.logger import app_logger as logger


@dataclass(frozen=True)
class OfferRule:
    """一条规则：条件满足时给出若干 (标签, 原始分, 理由)."""
    name: str
    matches: Callable[[UserProfile, FeatureVector], bool]
    offers: Tuple[Tuple[OfferLabel, float, str], ...]


RULE_TABLE: Tuple[OfferRule, ...] = (
    OfferRule(
        name="data_or_streaming",
        matches=lambda p, f: p.usage_type == UsageType.DATA or "streaming" in p.interests,
        offers=(
            (OfferLabel.DATA_BOOSTER, 0.90, "High data usage detected"),
            (OfferLabel.STREAMING_PARTNER_PACK, 0.85, "Perfect for streaming"),
        ),
    ),
    OfferRule(
        name="voice",
        matches=lambda p, f: p.usage_type == UsageType.VOICE or f.avg_call_duration > 200,
        offers=((OfferLabel.VOICE_BUNDLE, 0.88, "Frequent calls detected"),),
    ),
    OfferRule(
        name="gaming",
        matches=lambda p, f: "gaming" in p.interests,
        offers=((OfferLabel.STREAMING_PARTNER_PACK, 0.82, "Good for online gaming"),),
    ),
    OfferRule(
        name="budget_low",
        matches=lambda p, f: p.budget == BudgetTier.LOW,
        offers=(
            (OfferLabel.TOP_UP_PROMO, 0.75, "Budget-friendly option"),
            (OfferLabel.GENERAL_OFFER, 0.70, "Best value package"),
        ),
    ),
    OfferRule(
        name="budget_high",
        matches=lambda p, f: p.budget == BudgetTier.HIGH,
        offers=(
            (OfferLabel.FAMILY_PLAN_OFFER, 0.80, "Premium family package"),
            (OfferLabel.DEVICE_UPGRADE_OFFER, 0.78, "Upgrade to premium device"),
        ),
    ),
)

# 命中的规则给出的 offer 少于该数量时补默认 offer
MIN_RULE_OFFERS = 3

DEFAULT_OFFERS: Tuple[Tuple[OfferLabel, float, str], ...] = (
    (OfferLabel.GENERAL_OFFER, 0.70, "Popular combo package"),
    (OfferLabel.DATA_BOOSTER, 0.65, "Extra data boost"),
)

TRAVEL_RULE = OfferRule(
    name="traveler",
    matches=lambda p, f: f.travel_score > 30,
    offers=((OfferLabel.ROAMING_PASS, 0.77, "Great for travelers"),),
)


class RuleBasedScorer:
    """
    静态规则表打分.

    分数先按 ``degraded_confidence_scale`` 缩放，再封顶到 ``degraded_confidence_cap``（< 0.8），
    避免降级结果看起来和真实模型一样可信。
    """

    def __init__(self, policy: RecommendationPolicy):
        self.policy = policy

    def score(self, profile: UserProfile, features: FeatureVector) -> List[RankedOffer]:
        raw: List[Tuple[OfferLabel, float, str]] = []
        matched_rules: List[str] = []

        for rule in RULE_TABLE:
            if rule.matches(profile, features):
                raw.extend(rule.offers)
                matched_rules.append(rule.name)

        if len(raw) < MIN_RULE_OFFERS:
            raw.extend(DEFAULT_OFFERS)
            matched_rules.append("default")

        if TRAVEL_RULE.matches(profile, features):
            raw.extend(TRAVEL_RULE.offers)
            matched_rules.append(TRAVEL_RULE.name)

        # 同一标签只保留最高分，位置取第一次出现的位置
        best: Dict[OfferLabel, Tuple[int, float, str]] = {}
        for position, (label, score, reason) in enumerate(raw):
            if label not in best:
                best[label] = (position, score, reason)
            elif score > best[label][1]:
                best[label] = (best[label][0], score, reason)

        ordered = sorted(best.items(), key=lambda kv: (-kv[1][1], kv[1][0]))[:self.policy.max_rule_offers]

        offers = [
            RankedOffer(
                label=label.value,
                confidence_score=round(
                    min(score * self.policy.degraded_confidence_scale, self.policy.degraded_confidence_cap), 4
                ),
                explanation=reason,
                rank=rank,
                source=OfferSource.RULES,
            )
            for rank, (label, (_, score, reason)) in enumerate(ordered)
        ]

        logger.info(
            f"规则打分完成: rules={matched_rules}, "
            f"offers={[(o.label, o.confidence_score) for o in offers]}"
        )
        return offers
