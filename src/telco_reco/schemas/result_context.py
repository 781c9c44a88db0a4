"""
@File       : result_context.py
@Description: 统一接口返回类型 ResultContext.

@Time       : 2026/01/12 21:25
@Author     : hcy18
"""
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import ConfigDict, Field

from telco_reco.schemas.base import CamelCaseModel
from telco_reco.utils.trace_context import get_trace_id

T = TypeVar("T")

# 常量定义
SUCCESS_CODE = "0"
SYSTEM_ERROR_CODE = "SYS9999"
VALIDATION_ERROR_CODE = "VALIDATION_ERROR"


class ResultContext(CamelCaseModel, Generic[T]):
    """
    统一接口返回类型.

    与其它微服务（目录服务等）的 ResultContext 保持一致，
    调用下游服务时也用它来解析响应。
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "success": True,
                    "code": "0",
                    "message": "推荐成功",
                    "data": {"total": 0},
                    "traceId": "123e4567-e89b-12d3-a456-426614174000",
                    "extra": {},
                },
                {
                    "success": False,
                    "code": "SYS9999",
                    "message": "操作失败",
                    "data": None,
                    "traceId": "123e4567-e89b-12d3-a456-426614174000",
                    "extra": {},
                },
            ],
        }
    )

    data: Optional[T] = Field(default=None, description="返回数据")
    success: bool = Field(..., description="是否成功")
    code: str = Field(..., description="状态码")
    message: str = Field(..., description="消息")
    trace_id: str = Field(default_factory=get_trace_id, description="链路追踪ID")
    # 额外信息，用于向后兼容
    extra: Dict[str, Any] = Field(default_factory=dict, description="额外信息")

    # ==================== 静态工厂方法 ====================

    @staticmethod
    def ok(
        data: Optional[T] = None,
        message: str = "操作成功",
        trace_id: Optional[str] = None,
    ) -> "ResultContext[T]":
        """成功返回，traceId 默认取当前请求上下文."""
        return ResultContext(
            success=True,
            code=SUCCESS_CODE,
            message=message,
            data=data,
            trace_id=trace_id if trace_id else get_trace_id(),
        )

    @staticmethod
    def fail(
        message: str = "操作失败",
        code: str = SYSTEM_ERROR_CODE,
        data: Optional[T] = None,
        trace_id: Optional[str] = None,
    ) -> "ResultContext[T]":
        """失败返回，code 默认为系统错误."""
        return ResultContext(
            success=False,
            code=code,
            message=message,
            data=data,
            trace_id=trace_id if trace_id else get_trace_id(),
        )
