"""
@File       : classifier_schema.py
@Description: ==================== 分类模型（ML 服务）相关模型 ====================

@Time       : 2026/01/12 22:05
@Author     : hcy18
"""
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from telco_reco.schemas.base import FrozenCamelCaseModel


class PlanType(str, Enum):
    """分类模型只接受这两个枚举值."""
    PREPAID = "Prepaid"
    POSTPAID = "Postpaid"


class FeatureVector(BaseModel):
    """
    分类模型请求体.

    字段名保持蛇形命名，与模型服务的接口定义完全一致，不做驼峰转换。
    """
    avg_data_usage_gb: float = Field(..., ge=0, description="月均流量（GB）")
    pct_video_usage: int = Field(..., ge=0, le=100, description="视频流量占比（0-100）")
    avg_call_duration: float = Field(..., ge=0, description="月均通话时长（分钟）")
    sms_freq: int = Field(..., ge=0, description="月均短信条数")
    monthly_spend: float = Field(..., ge=0, description="月均消费")
    topup_freq: int = Field(..., ge=0, description="月均充值次数")
    travel_score: int = Field(..., ge=0, le=100, description="出行得分（0-100）")
    complaint_count: int = Field(..., ge=0, description="投诉次数")
    plan_type: PlanType = Field(..., description="套餐类型")
    device_brand: str = Field(..., description="设备品牌")


def _normalize_confidence(value: Optional[float]) -> Optional[float]:
    """置信度可能是 0-1 也可能是 0-100，统一成 0-1."""
    if value is None:
        return None
    if value > 1:
        value = value / 100
    return min(max(value, 0.0), 1.0)


class _ClassifierReply(BaseModel):
    """模型服务响应公共字段，未知字段忽略."""

    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = Field(default=None, description="模型给出的解释文本")
    user_summary: Optional[Dict[str, Any]] = Field(default=None, description="模型回显的用户摘要")


class TopOffersResponse(_ClassifierReply):
    """形态 (a)：主标签 + 有序备选列表，共享一个置信度."""
    kind: Literal["top_offers"] = "top_offers"
    primary_offer: Optional[str] = Field(default=None, description="主推荐标签")
    top_offers: List[str] = Field(..., description="按排名排列的标签列表")
    confidence_score: Optional[float] = Field(default=None, ge=0, description="共享置信度")

    @field_validator("confidence_score")
    @classmethod
    def normalize_confidence(cls, value: Optional[float]) -> Optional[float]:
        return _normalize_confidence(value)


class PairedRecommendation(BaseModel):
    """形态 (b) 中的 recommendation 对象."""

    model_config = ConfigDict(extra="ignore")

    primary_offer: Optional[str] = Field(default=None, description="基于内容的主推荐")
    social_proof_offer: Optional[str] = Field(default=None, description="协同过滤给出的次推荐")
    confidence_score: Optional[float] = Field(default=None, ge=0, description="主推荐置信度")

    @field_validator("confidence_score")
    @classmethod
    def normalize_confidence(cls, value: Optional[float]) -> Optional[float]:
        return _normalize_confidence(value)


class PairedOfferResponse(_ClassifierReply):
    """形态 (b)：主标签 + 单个次标签."""
    kind: Literal["paired"] = "paired"
    recommendation: PairedRecommendation = Field(..., description="推荐对象")


ClassifierReply = Union[TopOffersResponse, PairedOfferResponse]


class OfferSource(str, Enum):
    """排序结果的来源：真实模型 or 规则兜底（降级）."""
    CLASSIFIER = "classifier"
    RULES = "rules"


class RankedOffer(FrozenCamelCaseModel):
    """归一化后的排序 offer，rank 顺序有意义，必须保留."""
    label: str = Field(..., description="offer 标签")
    confidence_score: float = Field(..., ge=0, le=1, description="置信度")
    explanation: str = Field(default="", description="解释文本")
    rank: int = Field(..., ge=0, description="排名（从 0 开始）")
    source: OfferSource = Field(default=OfferSource.CLASSIFIER, description="来源")
