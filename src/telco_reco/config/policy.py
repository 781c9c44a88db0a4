"""
@File       : policy.py
@Description: 推荐策略参数（衰减系数、分数下限、预算区间、相关性权重等）

@Time       : 2026/01/13 10:15
@Author     : hcy18
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from telco_reco.schemas.catalog_schema import Category, OfferLabel
from telco_reco.schemas.user_schema import BudgetTier, UsageType
from telco_reco.utils.logger import app_logger as logger


class PriceRange(BaseModel):
    """价格区间（闭区间），max 为空表示无上限."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(default=0, ge=0, description="最低价格")
    max: Optional[int] = Field(default=None, description="最高价格，空表示无上限")

    def contains(self, price: int) -> bool:
        if price < self.min:
            return False
        return self.max is None or price <= self.max


class RelevanceWeights(BaseModel):
    """补足阶段的相关性打分权重."""
    category_match: float = Field(default=3.0, ge=0)
    popularity: float = Field(default=2.0, ge=0, description="热度归一化后的最高加分")
    budget_match: float = Field(default=2.0, ge=0)
    low_price: float = Field(default=1.0, ge=0)


def _default_budget_ranges() -> Dict[BudgetTier, PriceRange]:
    return {
        BudgetTier.LOW: PriceRange(min=0, max=100_000),
        BudgetTier.MEDIUM: PriceRange(min=30_000, max=200_000),
        BudgetTier.HIGH: PriceRange(min=80_000, max=None),
    }


def _default_fallback_budget_ranges() -> Dict[BudgetTier, PriceRange]:
    return {
        BudgetTier.LOW: PriceRange(min=0, max=100_000),
        BudgetTier.MEDIUM: PriceRange(min=50_000, max=200_000),
        BudgetTier.HIGH: PriceRange(min=100_000, max=None),
    }


def _default_label_categories() -> Dict[str, Category]:
    return {
        OfferLabel.VOICE_BUNDLE.value: Category.VOICE,
        OfferLabel.DATA_BOOSTER.value: Category.DATA,
        OfferLabel.ROAMING_PASS.value: Category.ROAMING,
        OfferLabel.STREAMING_PARTNER_PACK.value: Category.STREAMING,
        OfferLabel.FAMILY_PLAN_OFFER.value: Category.COMBO,
        OfferLabel.DEVICE_UPGRADE_OFFER.value: Category.DEVICE,
        OfferLabel.RETENTION_OFFER.value: Category.COMBO,
        OfferLabel.TOP_UP_PROMO.value: Category.DATA,
        OfferLabel.GENERAL_OFFER.value: Category.COMBO,
    }


def _default_usage_categories() -> Dict[UsageType, List[Category]]:
    return {
        UsageType.DATA: [Category.DATA, Category.STREAMING],
        UsageType.VOICE: [Category.VOICE, Category.COMBO],
        UsageType.SMS: [Category.COMBO],
        UsageType.MIXED: [Category.COMBO, Category.DATA, Category.VOICE],
    }


class RecommendationPolicy(BaseModel):
    """
    推荐策略参数.

    这些常量在历史版本中多次调整过，统一作为可配置项：
    默认值写在代码里，可被本地 YAML 策略文件或 nacos 的 ``recommendation`` 配置覆盖。
    """

    model_config = ConfigDict(frozen=True)

    # ResponseNormalizer
    decay_factor: float = Field(default=0.97, gt=0, le=1, description="备选 offer 每降一名的几何衰减系数")
    score_floor: float = Field(default=0.35, ge=0, le=1, description="衰减后的分数下限")
    secondary_offer_factor: float = Field(default=0.85, gt=0, le=1, description="次推荐相对主推荐的分数比例")
    agreement_boost: float = Field(default=1.1, ge=1, description="两个信号一致时的加成")
    default_confidence: float = Field(default=0.5, ge=0, le=1, description="响应缺少置信度时的默认值")

    # RuleBasedScorer（降级模式）
    degraded_confidence_scale: float = Field(default=0.85, gt=0, le=1)
    degraded_confidence_cap: float = Field(default=0.79, ge=0, lt=0.8, description="降级模式分数上限，必须低于 0.8")
    max_rule_offers: int = Field(default=8, ge=1)

    # BudgetFilter / CandidateResolver
    budget_ranges: Dict[BudgetTier, PriceRange] = Field(default_factory=_default_budget_ranges)
    label_categories: Dict[str, Category] = Field(default_factory=_default_label_categories)

    # FallbackFiller
    usage_categories: Dict[UsageType, List[Category]] = Field(default_factory=_default_usage_categories)
    default_fallback_categories: List[Category] = Field(default_factory=lambda: [Category.COMBO])
    fallback_budget_ranges: Dict[BudgetTier, PriceRange] = Field(default_factory=_default_fallback_budget_ranges)
    fallback_budget_threshold: int = Field(default=3, ge=0, description="候选数超过该值才进一步按预算收窄")
    relevance_weights: RelevanceWeights = Field(default_factory=RelevanceWeights)
    popularity_norm: int = Field(default=500, gt=0, description="热度归一化分母")
    low_price_threshold: int = Field(default=50_000, ge=0, description="低价加分阈值")
    fallback_score_max: float = Field(default=0.70, ge=0, le=1)
    fallback_score_min: float = Field(default=0.55, ge=0, le=1)
    fallback_score_gap: float = Field(default=0.01, gt=0, description="补足分数与已有最低分之间的最小间隔")

    @model_validator(mode="after")
    def check_fallback_band(self) -> "RecommendationPolicy":
        if self.fallback_score_min > self.fallback_score_max:
            raise ValueError("fallback_score_min 不能大于 fallback_score_max")
        return self


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """递归合并配置，override 优先."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_policy_file(path: str) -> Dict[str, Any]:
    """读取本地 YAML 策略文件，支持顶层直接写参数或放在 recommendation 节点下."""
    content = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(content, dict):
        raise ValueError(f"策略文件格式错误: {path}")
    return content.get("recommendation", content)


def build_policy(*overrides: Optional[Dict[str, Any]]) -> RecommendationPolicy:
    """
    以默认值为基础，依次合并各个覆盖来源，生成策略对象.

    Args:
        overrides: 覆盖配置（按优先级从低到高），None 会被跳过

    Returns:
        RecommendationPolicy 实例
    """
    merged: Dict[str, Any] = RecommendationPolicy().model_dump(mode="json")
    for override in overrides:
        if override:
            merged = _deep_merge(merged, override)
    policy = RecommendationPolicy.model_validate(merged)
    logger.info(
        f"推荐策略加载完成: decay={policy.decay_factor}, floor={policy.score_floor}, "
        f"fallback_band=[{policy.fallback_score_min}, {policy.fallback_score_max}]"
    )
    return policy
