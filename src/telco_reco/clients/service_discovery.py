"""
@File       : service_discovery.py
@Description: 定位目录服务：显式地址优先，其次从 nacos 注册中心挑选健康实例

@Time       : 2026/01/13 10:55
@Author     : hcy18
"""
from typing import Optional

from v2.nacos import ListInstanceParam

from telco_reco.config.nacos_client import get_nacos_client
from telco_reco.config.settings import Settings, get_settings
from telco_reco.utils.exceptions import CatalogUnavailableError
from telco_reco.utils.logger import app_logger as logger


async def discover_catalog_instance(service_name: str) -> str:
    """
    从 nacos 查找目录服务的一个健康实例.

    Args:
        service_name: 目录服务在 nacos 中的服务名

    Returns:
        实例地址（如 http://10.0.3.12:8080）

    Raises:
        CatalogUnavailableError: 注册中心未连接或没有健康实例
    """
    nacos_client = get_nacos_client()
    naming_client = nacos_client.register_client
    if not naming_client:
        raise CatalogUnavailableError("nacos 注册中心未连接，无法发现目录服务")

    try:
        instances = await naming_client.list_instances(
            ListInstanceParam(
                service_name=service_name,
                group_name=nacos_client.group,
                healthy_only=True,
                clusters=[nacos_client.service_cluster],
            )
        )
    except Exception as e:
        logger.error(f"查询目录服务实例失败: service={service_name}, error={e}", exc_info=True)
        raise CatalogUnavailableError(f"查询目录服务实例失败: {service_name}") from e

    if not instances:
        raise CatalogUnavailableError(f"没有健康的目录服务实例: {service_name}")

    # 权重最高的实例优先
    instance = max(instances, key=lambda i: i.weight)
    catalog_url = f"http://{instance.ip}:{instance.port}"
    logger.info(f"发现目录服务实例: {service_name} -> {catalog_url} (共 {len(instances)} 个)")
    return catalog_url


async def get_catalog_service_url(settings: Optional[Settings] = None) -> str:
    """获取目录服务的 URL：优先使用显式配置，否则走 nacos 服务发现."""
    settings = settings or get_settings()
    if settings.catalog_service_url:
        return settings.catalog_service_url.rstrip("/")
    if not settings.nacos_enabled:
        raise CatalogUnavailableError("未配置 catalog_service_url 且未启用 nacos，无法定位目录服务")
    return await discover_catalog_instance(settings.catalog_service_name)
