"""
过滤条件模块 - 按字段操作符过滤实体
"""

from typing import Any, Dict, Iterable, List, Set

from loguru import logger

from ..core.values import to_text, to_number
from .models import Predicate, OP_EQ, OP_NE, OP_LTE, OP_GTE, OP_LIKE


_MISSING = object()


class PredicateEvaluator:
    """
    过滤条件求值器

    所有条件之间是 AND 关系；同一字段上的多个操作符都会生效。
    """

    def __init__(self):
        self._operators = {
            OP_EQ: self._match_equals,
            OP_NE: self._match_not_equals,
            OP_LTE: self._match_less_equal,
            OP_GTE: self._match_greater_equal,
            OP_LIKE: self._match_like,
        }

    def filter(self,
               entities: List[Dict[str, Any]],
               predicates: Iterable[Predicate],
               known_fields: Set[str]) -> List[Dict[str, Any]]:
        """
        过滤实体

        Args:
            entities: 待过滤实体
            predicates: 过滤条件
            known_fields: 集合中出现过的字段，针对其他字段的等值条件不生效

        Returns:
            满足全部条件的实体，保持原有顺序
        """
        active = []
        for predicate in predicates:
            # 只忽略未知字段上的等值条件，其余操作符照常求值
            if predicate.operator == OP_EQ and predicate.field not in known_fields:
                logger.debug(f"忽略未知字段过滤条件: {predicate.field}")
                continue
            if predicate.operator not in self._operators:
                logger.debug(f"忽略未知操作符: {predicate.operator}")
                continue
            active.append(predicate)

        if not active:
            return list(entities)

        return [entity for entity in entities if all(self.matches(entity, p) for p in active)]

    def matches(self, entity: Dict[str, Any], predicate: Predicate) -> bool:
        """判断单个实体是否满足条件"""
        value = entity.get(predicate.field, _MISSING)
        return self._operators[predicate.operator](value, predicate.values)

    @staticmethod
    def _match_equals(value: Any, expected: Iterable[str]) -> bool:
        if value is _MISSING:
            return False
        text = to_text(value)
        return any(text == candidate for candidate in expected)

    @classmethod
    def _match_not_equals(cls, value: Any, expected: Iterable[str]) -> bool:
        return not cls._match_equals(value, expected)

    @staticmethod
    def _compare(value: Any, expected: Iterable[str], check) -> bool:
        """数值比较，任一侧不是数值时不匹配"""
        if value is _MISSING:
            return False
        number = to_number(value)
        if number is None:
            return False
        for candidate in expected:
            bound = to_number(candidate)
            if bound is None or not check(number, bound):
                return False
        return True

    @classmethod
    def _match_less_equal(cls, value: Any, expected: Iterable[str]) -> bool:
        return cls._compare(value, expected, lambda number, bound: number <= bound)

    @classmethod
    def _match_greater_equal(cls, value: Any, expected: Iterable[str]) -> bool:
        return cls._compare(value, expected, lambda number, bound: number >= bound)

    @staticmethod
    def _match_like(value: Any, expected: Iterable[str]) -> bool:
        if value is _MISSING:
            return False
        text = to_text(value)
        return all(candidate in text for candidate in expected)
