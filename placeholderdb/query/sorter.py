"""
排序模块
"""

from typing import Any, Dict, List, Sequence, Tuple

from loguru import logger

from ..core.values import is_number, to_text
from .models import SortKey


class Sorter:
    """
    稳定多字段排序

    数值按数值比较，字符串按字典序比较，数值排在字符串之前；
    缺少该字段的实体总是排在最后。没有任何实体包含的字段不参与排序。
    """

    def sort(self, entities: List[Dict[str, Any]], keys: Sequence[SortKey]) -> List[Dict[str, Any]]:
        result = list(entities)

        # 从最后一个键开始逐个稳定排序，得到多字段排序结果
        for key in reversed(keys):
            present = [entity for entity in result if key.field in entity]
            if not present:
                logger.debug(f"忽略未知排序字段: {key.field}")
                continue
            missing = [entity for entity in result if key.field not in entity]
            present.sort(key=lambda entity: self._sort_value(entity[key.field]), reverse=key.descending)
            result = present + missing

        return result

    @staticmethod
    def _sort_value(value: Any) -> Tuple[int, Any]:
        if is_number(value):
            return (0, value)
        if isinstance(value, str):
            return (1, value)
        return (2, to_text(value))
