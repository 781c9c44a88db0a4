"""
@File       : exceptions.py
@Description: 推荐服务异常：大部分只标记降级边界，不会抛给调用方

@Time       : 2026/01/13 11:05
@Author     : hcy18
"""


class RecommendationError(Exception):
    """Base exception for the recommendation service."""


class ClassifierUnavailableError(RecommendationError):
    """分类模型不可用：网络错误、超时、非 2xx、响应体无法解析."""


class CatalogUnavailableError(RecommendationError):
    """目录快照读取失败."""


class HistoryPersistError(RecommendationError):
    """推荐历史写入失败（尽力而为，不影响响应）."""


class RecommendationNotFoundError(RecommendationError):
    """推荐记录不存在，或不属于该用户."""
