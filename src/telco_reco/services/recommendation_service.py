"""
@File       : recommendation_service.py
@Description: 推荐服务核心：模型打分 → 候选解析 → 预算过滤 → 确定性选择 → 补足 → 组装

@Time       : 2026/01/13 19:00
@Author     : hcy18
"""
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set

from telco_reco.clients.classifier_client import ClassifierClient, build_feature_vector
from telco_reco.clients.redis_client import get_redis_client
from telco_reco.config.nacos_client import get_nacos_client
from telco_reco.config.policy import RecommendationPolicy, build_policy, load_policy_file
from telco_reco.config.settings import Settings, get_settings
from telco_reco.provider.catalog_provider import CatalogProvider, HttpCatalogProvider, YamlCatalogProvider
from telco_reco.provider.history_store import HistoryStore, RedisHistoryStore
from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.schemas.classifier_schema import OfferSource, RankedOffer
from telco_reco.schemas.page_result_schema import PageResult
from telco_reco.schemas.recommendation_schema import (Algorithm, FeedbackRequest, HistoryRecord, InteractionRequest,
                                                      Provenance, RecommendationEntry, RecommendationMetadata,
                                                      RecommendationResult, RecommendationStats, ScoreDistribution)
from telco_reco.schemas.user_schema import UserProfile
from telco_reco.services.budget_filter import BudgetFilter
from telco_reco.services.candidate_resolver import CandidateResolver
from telco_reco.services.deterministic_selector import select_one
from telco_reco.services.fallback_filler import FallbackFiller
from telco_reco.services.response_normalizer import ResponseNormalizer
from telco_reco.services.rule_based_scorer import RuleBasedScorer
from telco_reco.utils.exceptions import CatalogUnavailableError, RecommendationNotFoundError
from telco_reco.utils.logger import app_logger as logger


# 反馈评分满分
FEEDBACK_RATING_SCALE = 5


class ResolutionState(str, Enum):
    """单次推荐的处理阶段."""
    INIT = "INIT"
    CLASSIFY = "CLASSIFY"
    RESOLVE_LOOP = "RESOLVE_LOOP"
    FALLBACK = "FALLBACK"
    DONE = "DONE"


class RecommendationService:
    """
    推荐服务核心类.

    所有依赖在构造时注入，实例本身不保存任何请求间共享的可变状态；
    每个请求读取一次目录快照，调用一次分类模型。
    """

    _instance: Optional["RecommendationService"] = None

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        classifier_client: ClassifierClient,
        policy: RecommendationPolicy,
        history_store: Optional[HistoryStore] = None,
    ):
        self.catalog_provider = catalog_provider
        self.classifier_client = classifier_client
        self.policy = policy
        self.history_store = history_store
        self.candidate_resolver = CandidateResolver(policy)
        self.budget_filter = BudgetFilter(policy)
        self.fallback_filler = FallbackFiller(policy)

    @classmethod
    def get_instance(cls) -> "RecommendationService":
        """获取推荐服务单例（按当前配置装配依赖）."""
        if cls._instance is None:
            cls._instance = create_recommendation_service(get_settings())
        return cls._instance

    async def recommend(
        self,
        profile: UserProfile,
        limit: int = 5,
        algorithm: Algorithm = Algorithm.HYBRID,
    ) -> RecommendationResult:
        """
        为用户生成推荐.

        Args:
            profile: 用户画像
            limit: 推荐数量
            algorithm: 算法提示，只写入元数据

        Returns:
            推荐结果，长度为 min(limit, 上架商品数)
        """
        started = time.perf_counter()
        user_id = profile.user_id or "anonymous"
        self._transition(user_id, ResolutionState.INIT, limit=limit, algorithm=algorithm.value)

        catalog = await self._load_catalog()

        self._transition(user_id, ResolutionState.CLASSIFY, catalog_size=len(catalog))
        features = build_feature_vector(profile)
        ranked_offers = await self.classifier_client.score(features, profile)
        degraded = any(offer.source == OfferSource.RULES for offer in ranked_offers)

        self._transition(user_id, ResolutionState.RESOLVE_LOOP, offers=len(ranked_offers), degraded=degraded)
        entries = self._resolve_offers(ranked_offers, catalog, profile, limit)

        fallback_used = False
        if len(entries) < limit:
            self._transition(user_id, ResolutionState.FALLBACK, current=len(entries), limit=limit)
            fallback_used = True
            entries += self.fallback_filler.fill(entries, catalog, profile, limit - len(entries))

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        scores = [entry.final_score for entry in entries]
        metadata = RecommendationMetadata(
            recommendation_id=uuid.uuid4().hex,
            algorithm=algorithm,
            elapsed_ms=elapsed_ms,
            timestamp=datetime.now(timezone.utc),
            total_recommendations=len(entries),
            ranked_offer_count=len(ranked_offers),
            primary_count=sum(1 for entry in entries if entry.provenance == Provenance.PRIMARY),
            fallback_count=sum(1 for entry in entries if entry.provenance == Provenance.FALLBACK),
            fallback_used=fallback_used,
            classifier_degraded=degraded,
            catalog_size=len(catalog),
            score_distribution=ScoreDistribution.of(scores),
            used_features=features.model_dump(mode="json"),
        )

        self._transition(
            user_id, ResolutionState.DONE,
            total=len(entries), elapsed_ms=elapsed_ms,
            distribution=metadata.score_distribution.model_dump(),
        )
        return RecommendationResult(entries=entries, metadata=metadata)

    async def _load_catalog(self) -> List[CatalogItem]:
        """读取目录快照；目录不可用时按空目录处理."""
        try:
            items = await self.catalog_provider.list_active_items()
        except CatalogUnavailableError as e:
            logger.error(f"目录不可用，按空目录处理: {e}")
            return []
        return [item for item in items if item.is_active]

    def _resolve_offers(
        self,
        ranked_offers: List[RankedOffer],
        catalog: List[CatalogItem],
        profile: UserProfile,
        limit: int,
    ) -> List[RecommendationEntry]:
        """按 rank 顺序为每个 offer 选出一个商品，分数保持模型给出的分数不变."""
        entries: List[RecommendationEntry] = []
        used_ids: Set[str] = set()

        for offer in sorted(ranked_offers, key=lambda o: o.rank):
            if len(entries) >= limit:
                break

            candidates = self.candidate_resolver.resolve(catalog, offer.label, used_ids)
            if not candidates:
                logger.info(f"offer 没有可用候选，跳过: label={offer.label}, rank={offer.rank}")
                continue

            candidates = self.budget_filter.filter(candidates, profile.budget)
            item = select_one(candidates, profile.budget)
            used_ids.add(item.id)

            entries.append(RecommendationEntry(
                catalog_item_id=item.id,
                final_score=offer.confidence_score,
                reason=offer.explanation,
                provenance=Provenance.PRIMARY if offer.source == OfferSource.CLASSIFIER else Provenance.FALLBACK,
                source_label=offer.label,
                item=item,
            ))
            logger.debug(f"offer 选中商品: label={offer.label}, item_id={item.id}, score={offer.confidence_score}")

        return entries

    async def record_history(self, profile: UserProfile, result: RecommendationResult) -> None:
        """
        写入推荐历史（尽力而为）.

        在响应返回之后执行，任何异常只记录日志，不影响已经返回的推荐结果。
        """
        if self.history_store is None or not profile.user_id or not result.entries:
            return
        try:
            await self.history_store.record(
                user_id=profile.user_id,
                recommendation_id=result.metadata.recommendation_id,
                entries=result.entries,
                algorithm=result.metadata.algorithm,
                elapsed_ms=result.metadata.elapsed_ms,
            )
            logger.info(f"推荐历史已保存: user_id={profile.user_id}, count={len(result.entries)}")
        except Exception as e:
            logger.error(f"推荐历史保存失败: user_id={profile.user_id}, error={e}", exc_info=True)

    async def get_history(self, user_id: str, page_number: int,
                          page_size: int) -> PageResult[List[HistoryRecord]]:
        """分页查询推荐历史；未启用历史记录时返回空页."""
        if self.history_store is None:
            return PageResult(data=[], total=0, page_number=page_number, page_size=page_size)
        records, total = await self.history_store.list(user_id, page_number, page_size)
        return PageResult(data=records, total=total, page_number=page_number, page_size=page_size)

    async def track_interaction(self, recommendation_id: str, request: InteractionRequest) -> HistoryRecord:
        """
        记录用户对某次推荐的交互（viewed / clicked / purchased / ignored）.

        只追加到推荐记录上，不回写目录的购买计数。

        Raises:
            RecommendationNotFoundError: 推荐记录不存在或不属于该用户
        """
        record = None
        if self.history_store is not None:
            record = await self.history_store.track_interaction(
                user_id=request.user_id,
                recommendation_id=recommendation_id,
                catalog_item_id=request.catalog_item_id,
                action=request.action,
            )
        if record is None:
            raise RecommendationNotFoundError(f"推荐记录不存在: {recommendation_id}")
        logger.info(f"交互已记录: user_id={request.user_id}, recommendation_id={recommendation_id}, "
                    f"item_id={request.catalog_item_id}, action={request.action.value}")
        return record

    async def submit_feedback(self, request: FeedbackRequest) -> HistoryRecord:
        """
        提交推荐反馈，评分（1-5）换算成 0-1 的准确度写入推荐记录.

        Raises:
            RecommendationNotFoundError: 推荐记录不存在或不属于该用户
        """
        accuracy = request.rating / FEEDBACK_RATING_SCALE
        record = None
        if self.history_store is not None:
            record = await self.history_store.submit_feedback(
                user_id=request.user_id,
                recommendation_id=request.recommendation_id,
                accuracy=accuracy,
                comment=request.comment,
            )
        if record is None:
            raise RecommendationNotFoundError(f"推荐记录不存在: {request.recommendation_id}")
        logger.info(f"反馈已记录: user_id={request.user_id}, recommendation_id={request.recommendation_id}, "
                    f"accuracy={accuracy}")
        return record

    async def get_stats(self) -> RecommendationStats:
        """推荐统计；未启用历史记录时全部为 0."""
        if self.history_store is None:
            return RecommendationStats()
        return await self.history_store.stats()

    @staticmethod
    def _transition(user_id: str, state: ResolutionState, **context) -> None:
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        logger.info(f"[{state.value}] user_id={user_id}" + (f", {details}" if details else ""))


def load_recommendation_policy(settings: Settings) -> RecommendationPolicy:
    """按优先级合并策略参数：代码默认值 < 本地策略文件 < nacos 配置."""
    file_override = load_policy_file(settings.policy_file) if settings.policy_file else None
    nacos_override = get_nacos_client(settings).get_recommendation_config() if settings.nacos_enabled else None
    return build_policy(file_override, nacos_override)


def create_recommendation_service(settings: Settings) -> RecommendationService:
    """根据配置装配推荐服务."""
    policy = load_recommendation_policy(settings)

    if settings.catalog_source == "http":
        catalog_provider: CatalogProvider = HttpCatalogProvider(
            timeout=settings.catalog_timeout,
            base_url=settings.catalog_service_url,
        )
    else:
        catalog_provider = YamlCatalogProvider(settings.catalog_file)

    classifier_client = ClassifierClient(
        url=settings.classifier_url,
        timeout=settings.classifier_timeout,
        normalizer=ResponseNormalizer(policy),
        rule_scorer=RuleBasedScorer(policy),
        provider=settings.classifier_provider,
    )

    history_store = None
    if settings.history_enabled:
        history_store = RedisHistoryStore(
            redis_client=get_redis_client(),
            max_items=settings.history_max_items,
            ttl=settings.history_ttl,
            model_version=settings.model_version,
        )

    return RecommendationService(
        catalog_provider=catalog_provider,
        classifier_client=classifier_client,
        policy=policy,
        history_store=history_store,
    )


def get_recommendation_service() -> RecommendationService:
    """获取推荐服务单例."""
    return RecommendationService.get_instance()
