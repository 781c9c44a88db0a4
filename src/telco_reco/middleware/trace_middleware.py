"""
@File       : trace_middleware.py
@Description:

@Time       : 2026/01/12 21:12
@Author     : hcy18
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from telco_reco.utils.trace_context import TRACE_ID_HEADER, extract_trace_id_from_request, set_trace_id


class TraceIDMiddleware(BaseHTTPMiddleware):
    """中间件：从请求头提取 traceId 并设置到上下文变量中，响应头回写同一个 traceId."""

    async def dispatch(self, request: Request, call_next):
        trace_id = extract_trace_id_from_request(request)
        set_trace_id(trace_id)

        response = await call_next(request)

        response.headers[TRACE_ID_HEADER] = trace_id
        return response
