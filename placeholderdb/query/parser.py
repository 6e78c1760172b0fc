"""
查询解析器模块 - 将请求查询字符串解析为查询对象
"""

from typing import Dict, List, Iterable, Optional, Tuple, Union
from urllib.parse import parse_qsl
from loguru import logger

from ..core.config import QueryConfig
from .models import (
    Query, Predicate, SortKey,
    PagePagination, SlicePagination, NoPagination, PaginationMode,
    OPERATOR_SUFFIXES, OP_EQ, ASC, DESC,
)


QueryInput = Union[str, bytes, Iterable[Tuple[str, str]], None]


class QueryParser:
    """
    查询解析器 - 解析 `key=value` 形式的查询参数

    解析永远不会失败：无法识别或格式错误的参数会回退到默认值。
    """

    def __init__(self, config: QueryConfig):
        """
        初始化查询解析器

        Args:
            config: 查询配置
        """
        self.config = config

        logger.info("查询解析器初始化完成")

    def parse(self, query: QueryInput) -> Query:
        """
        解析查询

        Args:
            query: 原始查询字符串（URL 编码，`&` 分隔）或 (key, value) 序列

        Returns:
            填充了默认值的查询对象
        """
        pairs = self._split_pairs(query)
        parsed = Query()

        equals: Dict[str, List[str]] = {}
        operators: List[Predicate] = []
        sort_fields: List[str] = []
        orders: List[str] = []
        raw_page = raw_limit = raw_start = raw_end = None

        for key, value in pairs:
            if not key:
                continue

            if key == "q":
                parsed.text = value or None
            elif key == "_sort":
                sort_fields.extend(self._split_list(value))
            elif key == "_order":
                orders.extend(self._split_list(value))
            elif key == "_page":
                raw_page = value
            elif key == "_limit":
                raw_limit = value
            elif key == "_start":
                raw_start = value
            elif key == "_end":
                raw_end = value
            elif key == "_embed":
                parsed.embed.extend(self._split_list(value))
            elif key == "_expand":
                parsed.expand.extend(self._split_list(value))
            elif key.startswith("_"):
                logger.debug(f"忽略未知保留参数: {key}")
            else:
                predicate = self._extract_operator(key, value)
                if predicate is not None:
                    operators.append(predicate)
                else:
                    equals.setdefault(key, []).append(value)

        parsed.predicates = [
            Predicate(field, OP_EQ, tuple(values)) for field, values in equals.items()
        ] + operators
        parsed.sort = self._extract_sort(sort_fields, orders)
        parsed.pagination = self._extract_pagination(raw_page, raw_limit, raw_start, raw_end)

        logger.debug(f"查询解析完成: {parsed}")
        return parsed

    def _split_pairs(self, query: QueryInput) -> List[Tuple[str, str]]:
        """拆分查询参数"""
        if query is None:
            return []
        if isinstance(query, bytes):
            query = query.decode("utf-8", errors="replace")
        if isinstance(query, str):
            return parse_qsl(query.lstrip("?"), keep_blank_values=True)
        return [(str(key), str(value)) for key, value in query]

    @staticmethod
    def _split_list(value: str) -> List[str]:
        """拆分逗号分隔的列表"""
        return [item.strip() for item in value.split(",") if item.strip()]

    @staticmethod
    def _extract_operator(key: str, value: str) -> Optional[Predicate]:
        """提取带操作符后缀的过滤条件"""
        for suffix, operator in OPERATOR_SUFFIXES.items():
            if key.endswith(suffix) and len(key) > len(suffix):
                return Predicate(key[:-len(suffix)], operator, (value,))
        return None

    @staticmethod
    def _extract_sort(fields: List[str], orders: List[str]) -> List[SortKey]:
        """提取排序键，排序方向按位置对应，无效方向按升序处理"""
        sort_keys = []
        for index, field in enumerate(fields):
            direction = orders[index].lower() if index < len(orders) else ASC
            if direction not in (ASC, DESC):
                direction = ASC
            sort_keys.append(SortKey(field, direction))
        return sort_keys

    def _extract_pagination(self,
                            raw_page: Optional[str],
                            raw_limit: Optional[str],
                            raw_start: Optional[str],
                            raw_end: Optional[str]) -> PaginationMode:
        """
        提取分页模式

        切片只有在 `_start` 和 `_end` 都是整数时才生效，并且优先于页码分页。
        """
        start = self._parse_int(raw_start)
        end = self._parse_int(raw_end)
        if start is not None and end is not None:
            return SlicePagination(start, end)

        if raw_page is not None or raw_limit is not None:
            page = self._parse_positive_int(raw_page, self.config.default_page)
            limit = self._parse_positive_int(raw_limit, self.config.default_limit)
            return PagePagination(page, limit)

        return NoPagination()

    @staticmethod
    def _parse_int(raw: Optional[str]) -> Optional[int]:
        """解析整数，失败时返回 None"""
        if raw is None:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            return None

    def _parse_positive_int(self, raw: Optional[str], default: int) -> int:
        """解析正整数，失败时返回默认值"""
        value = self._parse_int(raw)
        if value is None or value < 1:
            return default
        return value
