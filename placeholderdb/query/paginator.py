"""
分页模块 - 页码分页和区间切片
"""

import math
from typing import Any, Dict, List, Tuple

from .models import PagePagination, SlicePagination, PaginationMode


class Paginator:
    """
    分页器

    总数总是在分页之前、过滤之后计算。
    """

    def paginate(self,
                 entities: List[Dict[str, Any]],
                 mode: PaginationMode) -> Tuple[List[Dict[str, Any]], int]:
        """
        应用分页模式

        Args:
            entities: 过滤、排序后的实体
            mode: 分页模式

        Returns:
            (窗口内实体, 切片前总数)
        """
        total = len(entities)

        if isinstance(mode, PagePagination):
            begin = (mode.page - 1) * mode.limit
            return entities[begin:begin + mode.limit], total

        if isinstance(mode, SlicePagination):
            begin, end = self.resolve_slice(mode, total)
            return entities[begin:end], total

        return list(entities), total

    @staticmethod
    def resolve_slice(mode: SlicePagination, length: int) -> Tuple[int, int]:
        """把负数边界换算为从末尾计数的位置，并限制在 [0, length] 内"""
        begin = max(0, length + mode.start) if mode.start < 0 else min(mode.start, length)
        end = max(0, length + mode.end) if mode.end < 0 else min(mode.end, length)
        return begin, max(begin, end)

    @staticmethod
    def page_links(mode: PaginationMode, total: int) -> Dict[str, int]:
        """
        计算页码导航（first / prev / next / last）

        只有页码分页模式才有导航，其他模式返回空字典。
        """
        if not isinstance(mode, PagePagination):
            return {}

        last = max(1, math.ceil(total / mode.limit))
        links = {"first": 1}
        if 1 < mode.page <= last + 1:
            links["prev"] = mode.page - 1
        if mode.page < last:
            links["next"] = mode.page + 1
        links["last"] = last
        return links
