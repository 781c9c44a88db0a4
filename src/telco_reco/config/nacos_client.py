"""
@File       : nacos_client.py
@Description: Nacos 配置中心（推荐策略参数）与注册中心（本服务实例、目录服务发现）

@Time       : 2026/01/13 10:40
@Author     : hcy18
"""
from typing import Any, Dict, Optional

import yaml
from tenacity import retry, stop_after_attempt, wait_exponential
from v2.nacos import (ClientConfig, ClientConfigBuilder, ConfigParam, DeregisterInstanceParam, GRPCConfig,
                      NacosConfigService, NacosNamingService, RegisterInstanceParam)

from telco_reco.config.settings import Settings, get_settings
from telco_reco.utils.logger import app_logger as logger

# nacos YAML 中存放推荐策略参数的节点
RECOMMENDATION_SECTION = "recommendation"


class NacosClient:
    """
    Nacos 客户端封装.

    - 配置中心：读取 ``nacos_data_id`` 对应的 YAML，``recommendation`` 节点覆盖默认推荐策略
    - 注册中心：注册本服务实例，供 service_discovery 查找目录服务
    """

    _instance: Optional["NacosClient"] = None

    def __init__(self, settings: Settings):
        self.settings = settings
        self.group: str = settings.nacos_group
        self.service_cluster: str = settings.service_cluster
        self.client_config: Optional[ClientConfig] = None
        self.config_client: Optional[NacosConfigService] = None
        self.register_client: Optional[NacosNamingService] = None
        self.config_from_nacos: Dict[str, Any] = {}

    @classmethod
    def get_instance(cls, settings: Optional[Settings] = None) -> "NacosClient":
        """
        获取 NacosClient 单例实例.

        Args:
            settings: 应用配置，仅在第一次调用时生效。
        """
        if cls._instance is None:
            cls._instance = cls(settings=settings or get_settings())
        return cls._instance

    def _build_client_config(self) -> ClientConfig:
        return (ClientConfigBuilder()
                .server_address(self.settings.nacos_server_addr)
                .namespace_id(self.settings.nacos_namespace)
                .username(self.settings.nacos_username or "")
                .password(self.settings.nacos_password or "")
                .log_level("INFO")
                .grpc_config(GRPCConfig(grpc_timeout=5000))
                .build())

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def connect(self) -> None:
        """连接配置中心与注册中心（失败时指数退避重试 3 次）."""
        try:
            self.client_config = self._build_client_config()
            self.config_client = await NacosConfigService.create_config_service(self.client_config)
            self.register_client = await NacosNamingService.create_naming_service(self.client_config)

            await self.load_config()
            await self.config_client.add_listener(
                data_id=self.settings.nacos_data_id, group=self.group, listener=self.on_config_change,
            )
            await self.register()
            logger.info(f"Nacos 连接完成: server={self.settings.nacos_server_addr}, "
                        f"namespace={self.settings.nacos_namespace}")
        except Exception as e:
            logger.error(f"Failed to connect to Nacos: {e}")
            raise

    async def load_config(self) -> None:
        """拉取一次配置；配置为空时使用默认推荐策略."""
        if not self.config_client:
            raise RuntimeError("nacos 配置中心客户端未建立！")
        content = await self.config_client.get_config(ConfigParam(
            data_id=self.settings.nacos_data_id,
            group=self.group,
        ))
        self.config_from_nacos = self._parse(content)
        if not self.config_from_nacos:
            logger.warning("Nacos 配置为空，将使用默认推荐策略")

    async def on_config_change(self, tenant, data_id, group, content) -> None:
        """配置变更只刷新缓存，新的策略在推荐服务重新装配后生效."""
        self.config_from_nacos = self._parse(content)
        logger.info(f"Nacos 配置变更: data_id={data_id}, group={group}, "
                    f"sections={list(self.config_from_nacos)}")

    @staticmethod
    def _parse(content: Optional[str]) -> Dict[str, Any]:
        parsed = yaml.safe_load(content) if content else None
        return parsed if isinstance(parsed, dict) else {}

    async def register(self) -> None:
        """注册服务实例到 Nacos."""
        if not self.register_client:
            raise RuntimeError("nacos 注册中心客户端未建立！")
        settings = self.settings
        await self.register_client.register_instance(
            request=RegisterInstanceParam(service_name=settings.service_name, group_name=self.group,
                                          ip=settings.service_ip, port=settings.service_port, weight=1.0,
                                          cluster_name=self.service_cluster, metadata=settings.service_metadata,
                                          enabled=True, healthy=True, ephemeral=True))
        logger.info(f"服务已注册到 Nacos: {settings.service_name} {settings.service_ip}:{settings.service_port}")

    async def deregister_service(self) -> None:
        """从 Nacos 注销并关闭配置监听."""
        settings = self.settings
        try:
            if self.config_client:
                await self.config_client.shutdown()
            if self.register_client:
                await self.register_client.deregister_instance(
                    request=DeregisterInstanceParam(service_name=settings.service_name, group_name=self.group,
                                                    ip=settings.service_ip, port=settings.service_port,
                                                    cluster_name=self.service_cluster, ephemeral=True)
                )
            logger.info(f"服务已从 nacos 注销: {settings.service_name}")
        except Exception as e:
            logger.error(f"Failed to deregister service: {e}")

    def get_recommendation_config(self) -> Optional[Dict[str, Any]]:
        """推荐策略参数，没有配置时返回 None（使用默认策略）."""
        section = self.config_from_nacos.get(RECOMMENDATION_SECTION)
        return section if isinstance(section, dict) else None


def get_nacos_client(settings: Optional[Settings] = None) -> NacosClient:
    """获取 NacosClient 单例实例."""
    return NacosClient.get_instance(settings=settings)


async def init_nacos(settings: Settings) -> None:
    await get_nacos_client(settings).connect()
