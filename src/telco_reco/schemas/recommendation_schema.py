"""
@File       : recommendation_schema.py
@Description: Recommendation related data models

@Time       : 2026/01/12 22:30
@Author     : hcy18
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from telco_reco.schemas.base import CamelCaseModel
from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.schemas.user_schema import UserProfile


class Algorithm(str, Enum):
    """调用方给的算法提示，只记录在元数据中，不影响决策逻辑."""
    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    HYBRID = "hybrid"


class Provenance(str, Enum):
    """推荐条目来源：模型驱动（primary）或补足（fallback）."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class RecommendationEntry(CamelCaseModel):
    """单条推荐结果."""
    catalog_item_id: str = Field(..., description="目录商品ID")
    final_score: float = Field(..., ge=0, le=1, description="最终得分")
    reason: str = Field(..., description="推荐理由")
    provenance: Provenance = Field(..., description="来源：primary / fallback")
    source_label: str = Field(..., description="对应的 offer 标签")
    item: Optional[CatalogItem] = Field(default=None, description="商品快照")


class ScoreDistribution(CamelCaseModel):
    """得分分布直方图，用于发现系统是否悄悄降级到低置信度."""
    very_high: int = Field(default=0, description=">= 0.8")
    high: int = Field(default=0, description="0.6 - 0.8")
    medium: int = Field(default=0, description="0.4 - 0.6")
    low: int = Field(default=0, description="< 0.4")

    @classmethod
    def of(cls, scores: List[float]) -> "ScoreDistribution":
        """按得分区间统计."""
        distribution = cls()
        for score in scores:
            if score >= 0.8:
                distribution.very_high += 1
            elif score >= 0.6:
                distribution.high += 1
            elif score >= 0.4:
                distribution.medium += 1
            else:
                distribution.low += 1
        return distribution


class RecommendationMetadata(CamelCaseModel):
    """推荐元数据."""
    recommendation_id: str = Field(..., description="本次推荐的ID，用于回传交互与反馈")
    algorithm: Algorithm = Field(..., description="算法提示")
    elapsed_ms: int = Field(..., ge=0, description="耗时（毫秒）")
    timestamp: datetime = Field(..., description="生成时间")
    total_recommendations: int = Field(..., description="推荐条数")
    ranked_offer_count: int = Field(..., description="模型（或规则）给出的 offer 数量")
    primary_count: int = Field(..., description="primary 条目数")
    fallback_count: int = Field(..., description="fallback 条目数")
    fallback_used: bool = Field(..., description="是否触发了补足逻辑")
    classifier_degraded: bool = Field(..., description="分类模型不可用，使用了规则打分")
    catalog_size: int = Field(..., description="本次快照中的上架商品数")
    score_distribution: ScoreDistribution = Field(..., description="得分分布")
    used_features: Dict[str, Any] = Field(default_factory=dict, description="发送给模型的特征")


class RecommendationResult(CamelCaseModel):
    """推荐核心的返回值."""
    entries: List[RecommendationEntry] = Field(default_factory=list, description="推荐列表")
    metadata: RecommendationMetadata = Field(..., description="元数据")


# ==================== 接口请求/响应模型 ====================

class RecommendationRequest(CamelCaseModel):
    """推荐请求."""
    user_profile: UserProfile = Field(default_factory=UserProfile, description="用户画像")
    limit: int = Field(default=5, ge=1, le=20, description="推荐数量，1-20")
    algorithm: Algorithm = Field(default=Algorithm.HYBRID, description="算法提示")


class RecommendationResponse(CamelCaseModel):
    """推荐响应."""
    recommendations: List[RecommendationEntry] = Field(..., description="推荐列表")
    metadata: RecommendationMetadata = Field(..., description="元数据")
    total: int = Field(..., description="推荐条数")


class HistoryEntry(CamelCaseModel):
    """推荐历史中的单条记录."""
    catalog_item_id: str = Field(..., description="目录商品ID")
    score: float = Field(..., description="得分")
    reason: str = Field(default="", description="推荐理由")


class InteractionAction(str, Enum):
    """用户对推荐条目的行为."""
    VIEWED = "viewed"
    CLICKED = "clicked"
    PURCHASED = "purchased"
    IGNORED = "ignored"


class Interaction(CamelCaseModel):
    """一次用户交互."""
    catalog_item_id: str = Field(..., description="目录商品ID")
    action: InteractionAction = Field(..., description="行为")
    timestamp: datetime = Field(..., description="发生时间")


class HistoryRecord(CamelCaseModel):
    """一次推荐的历史记录."""
    recommendation_id: str = Field(..., description="推荐ID")
    user_id: str = Field(..., description="用户ID")
    algorithm: Algorithm = Field(..., description="算法提示")
    elapsed_ms: int = Field(..., description="耗时（毫秒）")
    model_version: str = Field(default="v1.0", description="模型版本")
    created_at: datetime = Field(..., description="记录时间")
    entries: List[HistoryEntry] = Field(default_factory=list, description="推荐条目")
    interactions: List[Interaction] = Field(default_factory=list, description="用户交互")
    accuracy: Optional[float] = Field(default=None, ge=0, le=1, description="用户反馈的准确度（评分 / 5）")
    feedback_comment: Optional[str] = Field(default=None, description="反馈备注")


class InteractionRequest(CamelCaseModel):
    """交互上报请求."""
    user_id: str = Field(..., min_length=1, description="用户ID")
    catalog_item_id: str = Field(..., min_length=1, description="目录商品ID")
    action: InteractionAction = Field(..., description="viewed / clicked / purchased / ignored")


class FeedbackRequest(CamelCaseModel):
    """推荐反馈请求."""
    user_id: str = Field(..., min_length=1, description="用户ID")
    recommendation_id: str = Field(..., min_length=1, description="推荐ID")
    rating: float = Field(..., ge=1, le=5, description="评分，1-5")
    comment: Optional[str] = Field(default=None, max_length=500, description="备注")


class AlgorithmStats(CamelCaseModel):
    """按算法提示分组的统计."""
    algorithm: Algorithm = Field(..., description="算法提示")
    count: int = Field(..., description="推荐次数")
    avg_response_time_ms: float = Field(..., description="平均耗时（毫秒）")
    avg_accuracy: Optional[float] = Field(default=None, description="平均准确度，没有反馈时为空")
    feedback_count: int = Field(default=0, description="反馈次数")


class RecommendationStats(CamelCaseModel):
    """推荐统计."""
    total_recommendations: int = Field(default=0, description="推荐总次数")
    total_users: int = Field(default=0, description="用户数")
    by_algorithm: List[AlgorithmStats] = Field(default_factory=list, description="按算法分组")
