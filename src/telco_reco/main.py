"""
@File       : main.py
@Description: FastAPI application entry

@Time       : 2026/01/13 20:00
@Author     : hcy18
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from telco_reco.api import recommendation_router
from telco_reco.clients.redis_client import get_redis_client
from telco_reco.config.nacos_client import get_nacos_client, init_nacos
from telco_reco.config.settings import get_settings
from telco_reco.middleware.trace_middleware import TraceIDMiddleware
from telco_reco.schemas.result_context import SYSTEM_ERROR_CODE, VALIDATION_ERROR_CODE, ResultContext
from telco_reco.services.recommendation_service import get_recommendation_service
from telco_reco.utils.logger import app_logger as logger
from telco_reco.utils.logger import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # Startup
    try:
        # Setup logging (必须在记录日志之前配置)
        log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level, log_to_file=settings.log_to_file)

        logger.info("正在启动 Telco recommendation service...")

        # nacos 初始化（配置中心 + 注册中心），推荐策略依赖其中的配置，必须先于推荐服务
        if settings.nacos_enabled:
            await init_nacos(settings)

        # 推荐历史是旁路功能，redis 不可用时服务照常启动
        if settings.history_enabled:
            try:
                await get_redis_client().connect()
            except Exception as e:
                logger.warning(f"Redis 不可用，推荐历史将无法写入: {e}")

        # 装配推荐服务（加载推荐策略）
        get_recommendation_service()

        logger.info("Telco recommendation service 启动成功！")

        banner = f"""
        {'=' * 60}
        🚀 {settings.app_name} 已启动！
        🔗 访问地址: http://{settings.service_ip}:{settings.service_port}
        📦 目录来源: {settings.catalog_source}
        🤖 分类模型: {settings.classifier_url}
        {'=' * 60}
        """
        print(banner, file=sys.stderr)

    except Exception as e:
        logger.error(f"Failed to start recommendation service: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down recommendation service...")

    try:
        if settings.nacos_enabled:
            await get_nacos_client().deregister_service()
            logger.info("Nacos service deregistered")

        if settings.history_enabled:
            await get_redis_client().close()

        logger.info("Telco recommendation service 已关闭...")

    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


app = FastAPI(
    title="Telco Offer Recommendation Service",
    description="电信套餐 / 增值包推荐服务",
    version="0.1.0",
    lifespan=lifespan,
)

# Add TraceID middleware (必须在 CORS 之前，以便尽早设置 traceId)
app.add_middleware(TraceIDMiddleware)

# Add CORS middleware 跨域
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"Request validation error: path={request.url.path}, errors={errors}")
    result = ResultContext.fail(
        message="请求参数验证失败",
        code=VALIDATION_ERROR_CODE,
        data={"errors": errors},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=result.model_dump(by_alias=True),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: path={request.url.path}, error={exc}", exc_info=True)
    result = ResultContext.fail(
        message=f"内部服务器错误: {str(exc)}",
        code=SYSTEM_ERROR_CODE,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(by_alias=True),
    )


# Include routers
app.include_router(recommendation_router.router)


# Root endpoint
@app.get("/", tags=["Root"], response_model=ResultContext[dict])
async def root() -> ResultContext[dict]:
    """Root endpoint."""
    settings = get_settings()
    return ResultContext.ok(
        data={
            "service": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        },
        message="服务运行中",
    )


# Health check endpoint
@app.get("/health", tags=["Health"], response_model=ResultContext[dict])
async def health() -> ResultContext[dict]:
    """Health check endpoint."""
    return ResultContext.ok(
        data={
            "status": "healthy",
            "service": get_settings().app_name,
        },
        message="服务健康",
    )


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "telco_reco.main:app",
        host=settings.service_ip,
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        http="h11"
    )
