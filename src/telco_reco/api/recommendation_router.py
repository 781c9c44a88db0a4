"""
@File       : recommendation_router.py
@Description: Recommendation API endpoints

@Time       : 2026/01/13 19:40
@Author     : hcy18
"""
from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query

from telco_reco.schemas.page_result_schema import PageResult
from telco_reco.schemas.recommendation_schema import (FeedbackRequest, HistoryRecord, InteractionRequest,
                                                      RecommendationRequest, RecommendationResponse,
                                                      RecommendationStats)
from telco_reco.schemas.result_context import ResultContext
from telco_reco.services.recommendation_service import RecommendationService, get_recommendation_service
from telco_reco.utils.exceptions import RecommendationNotFoundError
from telco_reco.utils.logger import app_logger as logger

router = APIRouter(
    prefix="/recommendations",
    tags=["Recommendation"],
)


@router.post("", response_model=ResultContext[RecommendationResponse])
async def recommend_offers(
    request: RecommendationRequest,
    background_tasks: BackgroundTasks,
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[RecommendationResponse]:
    """
    为用户生成套餐/增值包推荐.

    **推荐逻辑**：
    1. 根据用户画像构建特征，调用分类模型得到排序后的 offer 标签
    2. 按 rank 顺序为每个 offer 在目录中确定性地选出一个商品（预算是软约束）
    3. 数量不足时按相关性补足，补足条目标记为 `fallback`
    4. 分类模型不可用时自动改用规则打分（分数封顶 0.79）

    返回数量为 `min(limit, 上架商品数)`，推荐历史在响应返回后异步写入。
    """
    profile = request.user_profile
    try:
        logger.info(
            f"收到推荐请求: user_id={profile.user_id}, limit={request.limit}, "
            f"algorithm={request.algorithm.value}"
        )

        result = await service.recommend(profile=profile, limit=request.limit, algorithm=request.algorithm)
        background_tasks.add_task(service.record_history, profile, result)

        response = RecommendationResponse(
            recommendations=result.entries,
            metadata=result.metadata,
            total=len(result.entries),
        )

        logger.info(
            f"推荐完成: user_id={profile.user_id}, count={response.total}, "
            f"degraded={result.metadata.classifier_degraded}"
        )

        return ResultContext.ok(data=response, message="推荐成功")

    except Exception as e:
        logger.error(f"推荐接口异常: user_id={profile.user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"推荐服务异常: {str(e)}")


@router.get("/history", response_model=ResultContext[PageResult[List[HistoryRecord]]])
async def get_recommendation_history(
    user_id: str = Query(..., min_length=1, alias="userId", description="用户ID"),
    page_number: int = Query(1, ge=1, alias="pageNumber", description="页码，从1开始"),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize", description="每页大小，1-100"),
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[PageResult[List[HistoryRecord]]]:
    """分页查询用户的推荐历史（最新的在前）."""
    try:
        page_result = await service.get_history(user_id=user_id, page_number=page_number, page_size=page_size)
        logger.info(
            f"查询推荐历史完成: user_id={user_id}, page={page_number}, "
            f"count={len(page_result.data)}, total={page_result.total}"
        )
        return ResultContext.ok(data=page_result, message="查询成功")

    except Exception as e:
        logger.error(f"查询推荐历史异常: user_id={user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"查询推荐历史异常: {str(e)}")


@router.get("/stats", response_model=ResultContext[RecommendationStats])
async def get_recommendation_stats(
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[RecommendationStats]:
    """推荐统计：总次数、用户数，以及按算法提示分组的次数、平均耗时、平均准确度."""
    try:
        stats = await service.get_stats()
        return ResultContext.ok(data=stats, message="查询成功")

    except Exception as e:
        logger.error(f"查询推荐统计异常: error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"查询推荐统计异常: {str(e)}")


@router.post("/feedback", response_model=ResultContext[HistoryRecord])
async def submit_feedback(
    request: FeedbackRequest,
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[HistoryRecord]:
    """
    提交推荐反馈.

    评分 1-5，按 `rating / 5` 换算成准确度写入推荐记录，重复提交覆盖旧值。
    """
    try:
        record = await service.submit_feedback(request)
        return ResultContext.ok(data=record, message="反馈提交成功")

    except RecommendationNotFoundError as e:
        logger.warning(f"提交反馈失败: user_id={request.user_id}, error={str(e)}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"提交反馈异常: user_id={request.user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"提交反馈异常: {str(e)}")


@router.post("/{recommendation_id}/interaction", response_model=ResultContext[HistoryRecord])
async def track_interaction(
    request: InteractionRequest,
    recommendation_id: str = Path(..., min_length=1, description="推荐ID"),
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[HistoryRecord]:
    """上报用户对推荐条目的交互：viewed / clicked / purchased / ignored."""
    try:
        record = await service.track_interaction(recommendation_id, request)
        return ResultContext.ok(data=record, message="交互记录成功")

    except RecommendationNotFoundError as e:
        logger.warning(f"交互记录失败: user_id={request.user_id}, error={str(e)}")
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"交互记录异常: user_id={request.user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"交互记录异常: {str(e)}")

@router.get("/classifier/health", response_model=ResultContext[Dict[str, Any]])
async def classifier_health(
    service: RecommendationService = Depends(get_recommendation_service),
) -> ResultContext[Dict[str, Any]]:
    """分类模型服务健康状态与模型信息."""
    health = await service.classifier_client.health_check()
    return ResultContext.ok(
        data={**health, "model": service.classifier_client.model_info()},
        message="分类模型可用" if health["available"] else "分类模型不可用，推荐将使用规则打分",
    )
