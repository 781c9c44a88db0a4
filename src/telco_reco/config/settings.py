"""
@File       : settings.py
@Description: Application settings and configuration management.

@Time       : 2026/01/12 22:50
@Author     : hcy18
"""
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from telco_reco.utils.ip import get_local_ip

# 模块级别的单例实例（避免与 Pydantic 字段系统冲突）
_settings_instance: Optional["Settings"] = None


class Settings(BaseSettings):
    """对应.env中的配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="telco-reco-service", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=True, description="是否写日志文件")

    # Classifier（ML 模型服务）
    classifier_url: str = Field(
        default="https://huuddz-telco-hybrid-api.hf.space/recommend",
        description="分类模型推荐接口地址",
    )
    classifier_timeout: float = Field(default=10.0, gt=0, description="分类模型调用超时（秒），只调用一次，不重试")
    classifier_provider: str = Field(default="Hugging Face", description="模型托管方，仅用于展示")
    model_version: str = Field(default="v1.0", description="写入推荐历史的模型版本")

    # Catalog（目录服务）
    catalog_source: Literal["file", "http"] = Field(default="file", description="目录来源：本地文件 or 目录服务")
    catalog_file: str = Field(default="data/catalog.yaml", description="本地目录文件（相对项目根目录）")
    catalog_service_url: Optional[str] = Field(default=None, description="目录服务地址，不走 nacos 时使用")
    catalog_service_name: str = Field(default="telco-catalog-service", description="目录服务在 nacos 中的服务名")
    catalog_timeout: float = Field(default=10.0, gt=0, description="目录服务调用超时（秒）")

    # History（推荐历史，redis）
    history_enabled: bool = Field(default=True, description="是否记录推荐历史")
    redis_url: str = Field(default="redis://127.0.0.1:6379/0", description="Redis 地址")
    redis_password: Optional[str] = Field(default=None, description="Redis 密码")
    redis_max_connections: int = Field(default=10, description="Redis 最大连接数")
    history_max_items: int = Field(default=50, ge=1, description="每个用户保留的历史条数")
    history_ttl: int = Field(default=30 * 24 * 3600, ge=1, description="历史过期时间（秒）")

    # Policy（推荐策略参数，可被 nacos 或本地文件覆盖）
    policy_file: Optional[str] = Field(default=None, description="本地 YAML 策略文件")

    # Nacos Configuration
    nacos_enabled: bool = Field(default=False, description="是否启用 nacos（配置中心 + 注册中心）")
    nacos_server_addr: str = Field(default="127.0.0.1:8848", description="Nacos server address")
    nacos_namespace: str = Field(default="public", description="Nacos namespace")
    nacos_group: str = Field(default="DEFAULT_GROUP", description="Nacos group")
    nacos_data_id: str = Field(default="telco-reco-service.yaml", description="Nacos config data ID")
    nacos_username: Optional[str] = Field(default=None, description="Nacos username")
    nacos_password: Optional[str] = Field(default=None, description="Nacos password")

    # Service Registration
    service_name: str = Field(default="telco-reco-service", description="Service name for registration")
    service_ip: str = Field(default_factory=get_local_ip, description="Service IP")
    service_port: int = Field(default=8000, description="Service port")
    service_cluster: str = Field(default="DEFAULT", description="Service cluster")
    service_metadata: dict = Field(default_factory=lambda: {"version": "0.1.0"}, description="Service metadata")

    @classmethod
    def get_instance(cls) -> "Settings":
        """
        获取 Settings 单例实例.

        Returns:
            Settings 实例
        """
        global _settings_instance
        if _settings_instance is None:
            _settings_instance = cls()
        return _settings_instance


def get_settings() -> Settings:
    """获取 Settings 单例实例."""
    return Settings.get_instance()
