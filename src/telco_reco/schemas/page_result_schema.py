"""
@File       : page_result_schema.py
@Description: 分页结果（推荐历史查询）

@Time       : 2026/01/12 21:22
@Author     : hcy18
"""
import math
from typing import Generic, TypeVar

from pydantic import Field, computed_field

from telco_reco.schemas.base import CamelCaseModel

T = TypeVar("T")


class PageResult(CamelCaseModel, Generic[T]):
    """分页结果，页码从 1 开始."""
    data: T = Field(..., description="分页数据")
    total: int = Field(..., description="总记录数")
    page_number: int = Field(..., description="当前页码")
    page_size: int = Field(..., description="每页大小")

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0
