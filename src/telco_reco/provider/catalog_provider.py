"""
@File       : catalog_provider.py
@Description: 目录快照提供者：本地 YAML 文件 / 目录服务（HTTP）

@Time       : 2026/01/13 11:20
@Author     : hcy18
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

import httpx
import yaml
from pydantic import ValidationError

from telco_reco.clients.service_discovery import get_catalog_service_url
from telco_reco.schemas.catalog_schema import CatalogItem
from telco_reco.schemas.result_context import ResultContext
from telco_reco.utils.exceptions import CatalogUnavailableError
from telco_reco.utils.logger import app_logger as logger
from telco_reco.utils.trace_context import outbound_headers


class CatalogProvider(ABC):
    """目录存储"""

    @abstractmethod
    async def list_active_items(self) -> List[CatalogItem]:
        """一次性批量读取所有上架商品，不下推任何过滤条件"""
        pass


class YamlCatalogProvider(CatalogProvider):
    """
    从本地 YAML 文件读取目录.

    文件格式：
        ```yaml
        products:
          - id: data-10gb
            name: Data 10GB
            category: data
            price: 30000
            targetOffer: Data Booster
            purchaseCount: 450
        ```
    每次调用都重新读取文件，保证每个请求拿到的是新快照。
    """

    def __init__(self, path: str):
        self.path = Path(path)

    async def list_active_items(self) -> List[CatalogItem]:
        try:
            content = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            raw_items = content.get("products", []) if isinstance(content, dict) else content
            items = [CatalogItem.model_validate(raw) for raw in raw_items]
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            logger.error(f"读取本地目录失败: path={self.path}, error={e}")
            raise CatalogUnavailableError(f"无法读取目录文件 {self.path}") from e

        active_items = [item for item in items if item.is_active]
        logger.info(f"读取本地目录: path={self.path}, total={len(items)}, active={len(active_items)}")
        return active_items


class HttpCatalogProvider(CatalogProvider):
    """目录服务客户端."""

    def __init__(self, timeout: float = 10.0, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url: Optional[str] = base_url
        self.timeout = timeout
        self._transport = transport

    async def _get_base_url(self) -> str:
        """获取目录服务的基础 URL（带缓存）."""
        if not self._base_url:
            self._base_url = await get_catalog_service_url()
        return self._base_url

    async def list_active_items(self) -> List[CatalogItem]:
        """
        批量获取所有上架商品.

        Returns:
            商品快照列表

        Raises:
            CatalogUnavailableError: 目录服务不可用或响应无法解析
        """
        try:
            base_url = await self._get_base_url()
            url = f"{base_url}/products/active"

            logger.info(f"调用目录服务获取上架商品: url={url}")

            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=outbound_headers())
                response.raise_for_status()
                result = ResultContext[List[CatalogItem]].model_validate(response.json())

            if not result.success:
                raise CatalogUnavailableError(f"目录服务返回失败: code={result.code}, message={result.message}")

            items = [item for item in (result.data or []) if item.is_active]
            logger.info(f"获取上架商品成功: count={len(items)}")
            return items

        except CatalogUnavailableError:
            raise
        except httpx.TimeoutException as e:
            logger.error("获取上架商品超时")
            raise CatalogUnavailableError("目录服务超时") from e
        except (httpx.HTTPError, ValueError, RuntimeError) as e:
            logger.error(f"获取上架商品异常: error={str(e)}", exc_info=True)
            raise CatalogUnavailableError(f"目录服务异常: {e}") from e
