"""
@File       : user_schema.py
@Description: ==================== 用户画像相关模型 ====================

@Time       : 2026/01/12 21:48
@Author     : hcy18
"""
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from telco_reco.schemas.base import CamelCaseModel


class BudgetTier(str, Enum):
    """预算档位：软偏好，不是硬过滤条件."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UsageType(str, Enum):
    """用户主要使用类型."""
    DATA = "data"
    VOICE = "voice"
    SMS = "sms"
    MIXED = "mixed"


class UsageStats(CamelCaseModel):
    """用户使用量统计，缺失的字段由特征构建时补默认值."""
    avg_data_usage_mb: Optional[float] = Field(default=None, ge=0, description="月均流量（MB）")
    pct_video_usage: Optional[float] = Field(default=None, ge=0, le=1, description="视频流量占比（0-1）")
    avg_call_duration: Optional[float] = Field(default=None, ge=0, description="月均通话时长（分钟）")
    avg_sms_count: Optional[int] = Field(default=None, ge=0, description="月均短信条数")
    avg_spending: Optional[float] = Field(default=None, ge=0, description="月均消费")
    topup_freq: Optional[int] = Field(default=None, ge=0, description="月均充值次数")
    travel_score: Optional[float] = Field(default=None, ge=0, le=1, description="出行得分（0-1）")
    complaint_count: Optional[int] = Field(default=None, ge=0, description="投诉次数")


class UserProfile(CamelCaseModel):
    """用户画像（只读输入），只用于偏置过滤和兜底，不会被推荐核心修改."""
    user_id: Optional[str] = Field(default=None, description="用户ID，用于记录推荐历史")
    budget: Optional[BudgetTier] = Field(default=None, description="预算档位，可为空")
    usage_type: UsageType = Field(default=UsageType.MIXED, description="使用类型")
    interests: List[str] = Field(default_factory=list, description="兴趣标签，如 streaming / gaming")
    device_brand: Optional[str] = Field(default=None, description="设备品牌")
    plan_type: Optional[str] = Field(default=None, description="套餐类型：Prepaid / Postpaid / basic / premium ...")
    usage: Optional[UsageStats] = Field(default=None, description="使用量统计")

    @field_validator("interests")
    @classmethod
    def normalize_interests(cls, value: List[str]) -> List[str]:
        """兴趣标签统一小写、去空白、去重（保持顺序）."""
        seen = set()
        result = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.add(tag)
                result.append(tag)
        return result
