"""
@File       : base.py
@Description: Pydantic 基类模块，提供自动驼峰命名转换功能.

@Time       : 2026/01/12 21:20
@Author     : hcy18
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelCaseModel(BaseModel):
    """
    自动转换驼峰命名的 Pydantic 基类.

    - Python 代码中使用蛇形命名（snake_case）
    - JSON 序列化/反序列化时使用驼峰命名（camelCase），与前端、目录服务对接
    - 同时接受蛇形和驼峰命名（populate_by_name=True）

    示例：
        ```python
        class CatalogItem(CamelCaseModel):
            target_offer: str

        # 目录服务返回：{"targetOffer": "Data Booster"}
        # Python 中访问：item.target_offer
        ```
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FrozenCamelCaseModel(CamelCaseModel):
    """不可变的驼峰模型，用于一次请求内只读的快照数据."""

    model_config = ConfigDict(frozen=True)
