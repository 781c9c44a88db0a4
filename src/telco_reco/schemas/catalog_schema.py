"""
@File       : catalog_schema.py
@Description: ==================== 目录（商品）相关模型 ====================

@Time       : 2026/01/12 21:40
@Author     : hcy18
"""
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from telco_reco.schemas.base import FrozenCamelCaseModel


class Category(str, Enum):
    """目录商品分类（封闭集合）."""
    DATA = "data"
    VOICE = "voice"
    SMS = "sms"
    COMBO = "combo"
    ROAMING = "roaming"
    STREAMING = "streaming"
    DEVICE = "device"
    RETENTION = "retention"


class OfferLabel(str, Enum):
    """分类模型输出的 offer 标签词表."""
    DATA_BOOSTER = "Data Booster"
    DEVICE_UPGRADE_OFFER = "Device Upgrade Offer"
    FAMILY_PLAN_OFFER = "Family Plan Offer"
    VOICE_BUNDLE = "Voice Bundle"
    ROAMING_PASS = "Roaming Pass"
    STREAMING_PARTNER_PACK = "Streaming Partner Pack"
    GENERAL_OFFER = "General Offer"
    RETENTION_OFFER = "Retention Offer"
    TOP_UP_PROMO = "Top-up Promo"


class CatalogItem(FrozenCamelCaseModel):
    """
    目录商品快照.

    每次请求开始时从目录服务批量读取一次，本次推荐过程中只读。
    """
    id: str = Field(..., description="商品ID")
    name: str = Field(default="", description="商品名称")
    category: Category = Field(..., description="商品分类")
    price: int = Field(..., ge=0, description="价格（整数货币单位）")
    target_offer: Optional[str] = Field(default=None, description="直接对应的 offer 标签")
    purchase_count: int = Field(default=0, ge=0, description="购买次数（热度）")
    is_active: bool = Field(default=True, description="是否上架")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        """目录服务可能返回数字 id，统一按字符串处理."""
        return str(value) if isinstance(value, int) else value
