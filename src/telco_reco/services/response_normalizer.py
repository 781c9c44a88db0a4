"""
@File       : response_normalizer.py
@Description: 把分类模型的两种响应形态解析成统一的排序 offer 列表

@Time       : 2026/01/13 15:10
@Author     : hcy18
"""
from typing import Any, List, Optional

from pydantic import ValidationError

from telco_reco.config.policy import RecommendationPolicy
from telco_reco.schemas.classifier_schema import (ClassifierReply, OfferSource, PairedOfferResponse, RankedOffer,
                                                  TopOffersResponse)
from telco_reco.utils.exceptions import ClassifierUnavailableError
from telco_reco.utils.logger import app_logger as logger

DEFAULT_MESSAGE = "Recommended based on your usage pattern"
SOCIAL_PROOF_REASON = "Popular among users with similar usage patterns"
AGREEMENT_REASON = "Highly recommended! Both algorithms agree on this offer."


def detect_shape(raw: Any) -> Optional[ClassifierReply]:
    """
    识别响应形态并解析成对应的模型.

    - 存在列表类型的 ``top_offers`` 字段 → 形态 (a) ``TopOffersResponse``
    - 存在对象类型的 ``recommendation`` 字段 → 形态 (b) ``PairedOfferResponse``
    - 其它 → None（未知形态，不是错误）

    Raises:
        ClassifierUnavailableError: 识别出了形态，但字段内容不合法
    """
    if not isinstance(raw, dict):
        return None

    try:
        if isinstance(raw.get("top_offers"), list):
            return TopOffersResponse.model_validate(raw)
        if isinstance(raw.get("recommendation"), dict):
            return PairedOfferResponse.model_validate(raw)
    except ValidationError as e:
        raise ClassifierUnavailableError(f"分类模型响应字段不合法: {e.error_count()} errors") from e

    return None


class ResponseNormalizer:
    """响应归一化：先判别形态，再按形态各自的规则打分."""

    def __init__(self, policy: RecommendationPolicy):
        self.policy = policy

    def normalize(self, raw: Any) -> List[RankedOffer]:
        """
        解析分类模型原始响应.

        Args:
            raw: 已经反序列化的 JSON 响应体

        Returns:
            按 rank 排序的 offer 列表；未知或空的形态返回空列表
        """
        reply = detect_shape(raw)
        if reply is None:
            keys = list(raw.keys()) if isinstance(raw, dict) else type(raw).__name__
            logger.warning(f"未知的分类模型响应形态: keys={keys}")
            return []

        if isinstance(reply, TopOffersResponse):
            offers = self._from_top_offers(reply)
        else:
            offers = self._from_paired(reply)

        logger.info(
            f"分类模型响应归一化完成: shape={reply.kind}, "
            f"offers={[(o.label, round(o.confidence_score, 3)) for o in offers]}"
        )
        return offers

    def _from_top_offers(self, reply: TopOffersResponse) -> List[RankedOffer]:
        """形态 (a)：共享置信度按排名几何衰减，且不低于下限."""
        confidence = self._confidence(reply.confidence_score)
        message = reply.message or DEFAULT_MESSAGE

        labels: List[str] = []
        for label in ([reply.primary_offer] if reply.primary_offer else []) + reply.top_offers:
            label = label.strip()
            if label and label not in labels:
                labels.append(label)

        offers = []
        for rank, label in enumerate(labels):
            score = max(confidence * self.policy.decay_factor ** rank, self.policy.score_floor)
            offers.append(RankedOffer(
                label=label,
                confidence_score=round(min(score, 1.0), 4),
                explanation=f"{message} (Top recommendation)" if rank == 0
                else f"Alternative recommendation (Rank {rank + 1})",
                rank=rank,
                source=OfferSource.CLASSIFIER,
            ))
        return offers

    def _from_paired(self, reply: PairedOfferResponse) -> List[RankedOffer]:
        """形态 (b)：次推荐按比例降分；两者一致时合并并加成."""
        rec = reply.recommendation
        confidence = self._confidence(rec.confidence_score)
        message = reply.message or DEFAULT_MESSAGE
        primary = (rec.primary_offer or "").strip()
        secondary = (rec.social_proof_offer or "").strip()

        if primary and primary == secondary:
            boosted = min(confidence * self.policy.agreement_boost, 1.0)
            return [RankedOffer(label=primary, confidence_score=round(boosted, 4),
                                explanation=AGREEMENT_REASON, rank=0)]

        offers = []
        if primary:
            offers.append(RankedOffer(label=primary, confidence_score=round(confidence, 4),
                                      explanation=message, rank=0))
        if secondary:
            offers.append(RankedOffer(
                label=secondary,
                confidence_score=round(confidence * self.policy.secondary_offer_factor, 4),
                explanation=SOCIAL_PROOF_REASON,
                rank=len(offers),
            ))
        return offers

    def _confidence(self, value: Optional[float]) -> float:
        return self.policy.default_confidence if value is None else value
