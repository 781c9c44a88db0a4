"""
@File       : trace_context.py
@Description: 推荐请求的 traceId：从入站请求头读取，注入日志，并透传给分类模型与目录服务

@Time       : 2026/01/12 21:10
@Author     : hcy18
"""
import contextvars
import uuid
from typing import Optional

from starlette.requests import Request

# 固定的 traceId 请求头名称
TRACE_ID_HEADER = "X-Trace-ID"
MAX_TRACE_ID_LENGTH = 64

trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)


def current_trace_id() -> Optional[str]:
    """当前上下文中的 traceId，没有则返回 None（日志用，不生成新的）."""
    return trace_id_context.get()


def new_trace_id() -> str:
    return uuid.uuid4().hex


def get_trace_id() -> str:
    """当前推荐请求的 traceId；在请求之外（启动预热、后台任务）调用时生成新的."""
    return current_trace_id() or new_trace_id()


def set_trace_id(trace_id: str) -> None:
    trace_id_context.set(trace_id)


def extract_trace_id_from_request(request: Request) -> str:
    """
    读取调用方传入的 traceId.

    请求头缺失、为空或超过 MAX_TRACE_ID_LENGTH 时生成新的。
    """
    trace_id = (request.headers.get(TRACE_ID_HEADER) or "").strip()
    if trace_id and len(trace_id) <= MAX_TRACE_ID_LENGTH:
        return trace_id
    return new_trace_id()


def outbound_headers() -> dict[str, str]:
    """调用分类模型、目录服务时携带的请求头（透传 traceId）."""
    return {
        TRACE_ID_HEADER: get_trace_id(),
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
