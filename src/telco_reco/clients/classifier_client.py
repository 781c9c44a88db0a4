"""
@File       : classifier_client.py
@Description: Client for calling the external offer classifier (ML model service)

@Time       : 2026/01/13 16:40
@Author     : hcy18
"""
from typing import Any, Dict, List, Optional

import httpx

from telco_reco.schemas.classifier_schema import FeatureVector, PlanType, RankedOffer
from telco_reco.schemas.user_schema import BudgetTier, UsageType, UserProfile
from telco_reco.services.response_normalizer import ResponseNormalizer
from telco_reco.services.rule_based_scorer import RuleBasedScorer
from telco_reco.utils.exceptions import ClassifierUnavailableError
from telco_reco.utils.logger import app_logger as logger
from telco_reco.utils.trace_context import outbound_headers

# 特征默认值（用户没有使用量统计时使用）
DEFAULT_DATA_USAGE_MB = 5000
HEAVY_DATA_USAGE_MB = 15000
DEFAULT_VIDEO_PCT = 0.3
STREAMING_VIDEO_PCT = 0.6
DEFAULT_CALL_DURATION = 100
HEAVY_CALL_DURATION = 500
DEFAULT_SMS_COUNT = 50
DEFAULT_SPENDING = 75000
HIGH_BUDGET_SPENDING = 150000
LOW_BUDGET_SPENDING = 50000
DEFAULT_TOPUP_FREQ = 1
DEFAULT_TRAVEL_SCORE = 0.1
DEFAULT_COMPLAINT_COUNT = 0
DEFAULT_DEVICE_BRAND = "Unknown"


def normalize_plan_type(plan_type: Optional[str]) -> PlanType:
    """套餐类型映射到模型要求的 Prepaid / Postpaid."""
    if not plan_type:
        return PlanType.PREPAID
    normalized = plan_type.strip().lower()
    if "postpaid" in normalized or normalized == "premium":
        return PlanType.POSTPAID
    return PlanType.PREPAID


def build_feature_vector(profile: UserProfile) -> FeatureVector:
    """
    根据用户画像构建固定形状的特征向量.

    先按偏好推导默认值（使用类型、预算、兴趣），用户显式提供的使用量统计优先。
    """
    data_usage_mb = DEFAULT_DATA_USAGE_MB
    call_duration = DEFAULT_CALL_DURATION
    spending = DEFAULT_SPENDING
    video_pct = DEFAULT_VIDEO_PCT
    derived_plan = "standard"

    if profile.usage_type == UsageType.DATA:
        data_usage_mb = HEAVY_DATA_USAGE_MB
    elif profile.usage_type == UsageType.VOICE:
        call_duration = HEAVY_CALL_DURATION

    if profile.budget == BudgetTier.HIGH:
        spending = HIGH_BUDGET_SPENDING
        derived_plan = "premium"
    elif profile.budget == BudgetTier.LOW:
        spending = LOW_BUDGET_SPENDING
        derived_plan = "basic"

    if "streaming" in profile.interests:
        video_pct = STREAMING_VIDEO_PCT

    usage = profile.usage

    def pick(value, default):
        return default if value is None else value

    return FeatureVector(
        avg_data_usage_gb=round(pick(usage and usage.avg_data_usage_mb, data_usage_mb) / 1024, 4),
        pct_video_usage=int(pick(usage and usage.pct_video_usage, video_pct) * 100),
        avg_call_duration=float(pick(usage and usage.avg_call_duration, call_duration)),
        sms_freq=int(pick(usage and usage.avg_sms_count, DEFAULT_SMS_COUNT)),
        monthly_spend=float(pick(usage and usage.avg_spending, spending)),
        topup_freq=int(pick(usage and usage.topup_freq, DEFAULT_TOPUP_FREQ)),
        travel_score=int(pick(usage and usage.travel_score, DEFAULT_TRAVEL_SCORE) * 100),
        complaint_count=int(pick(usage and usage.complaint_count, DEFAULT_COMPLAINT_COUNT)),
        plan_type=normalize_plan_type(profile.plan_type or derived_plan),
        device_brand=profile.device_brand or DEFAULT_DEVICE_BRAND,
    )


class ClassifierClient:
    """
    分类模型网关.

    每个请求只调用一次模型服务（有超时，不重试）；网络错误、超时、非 2xx、
    响应体无法解析时不把异常抛给调用方，而是改用规则打分。
    """

    def __init__(
        self,
        url: str,
        timeout: float,
        normalizer: ResponseNormalizer,
        rule_scorer: RuleBasedScorer,
        provider: str = "Hugging Face",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.normalizer = normalizer
        self.rule_scorer = rule_scorer
        self.provider = provider
        self._transport = transport

    async def score(self, features: FeatureVector, profile: UserProfile) -> List[RankedOffer]:
        """
        对用户打分.

        Args:
            features: 特征向量
            profile: 用户画像（规则打分需要）

        Returns:
            排序 offer 列表；模型返回未知形态时为空列表
        """
        try:
            raw = await self._request(features)
            return self.normalizer.normalize(raw)
        except ClassifierUnavailableError as e:
            logger.warning(f"分类模型不可用，改用规则打分: {e}")
            return self.rule_scorer.score(profile, features)

    async def _request(self, features: FeatureVector) -> Any:
        """唯一的一次外部调用."""
        payload = features.model_dump(mode="json")
        logger.info(f"调用分类模型: url={self.url}, payload={payload}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, headers=outbound_headers())
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"分类模型调用超时: timeout={self.timeout}s")
            raise ClassifierUnavailableError("分类模型调用超时") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                f"分类模型返回错误状态: status={e.response.status_code}, "
                f"detail={self._error_detail(e.response)}"
            )
            raise ClassifierUnavailableError(f"分类模型返回 {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"分类模型网络异常: error={e}")
            raise ClassifierUnavailableError(f"分类模型网络异常: {e}") from e
        except ValueError as e:
            logger.error("分类模型响应不是合法的 JSON")
            raise ClassifierUnavailableError("分类模型响应不是合法的 JSON") from e

        logger.info(f"分类模型响应成功: status={response.status_code}")
        return body

    @staticmethod
    def _error_detail(response: httpx.Response) -> Any:
        """尽量取出校验错误明细，方便排查字段问题."""
        try:
            return response.json().get("detail")
        except (ValueError, AttributeError):
            return response.text[:500]

    async def health_check(self) -> Dict[str, Any]:
        """探测模型服务根路径是否可用."""
        health_url = self.url.rsplit("/recommend", 1)[0] or self.url
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                response = await client.get(health_url, headers=outbound_headers())
                response.raise_for_status()
            return {"status": "healthy", "available": True, "url": self.url}
        except httpx.HTTPError as e:
            logger.warning(f"分类模型健康检查失败: {e}")
            return {"status": "unhealthy", "available": False, "url": self.url, "error": str(e)}

    def model_info(self) -> Dict[str, Any]:
        """模型服务信息."""
        return {
            "url": self.url,
            "timeout": self.timeout,
            "provider": self.provider,
            "responseFormats": {
                "top_offers": "primary_offer + ordered top_offers with one shared confidence_score",
                "recommendation": "primary_offer + social_proof_offer with confidence_score",
            },
        }
