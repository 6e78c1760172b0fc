"""
值转换工具 - 查询比较时使用的文本/数值形式
"""

import json
import math
from typing import Any, Optional


def to_text(value: Any) -> str:
    """
    获取值的文本形式

    查询字符串中的值都是文本，比较前实体字段也统一转换为文本。
    布尔值和空值使用 JSON 字面量，整数值的浮点数不带小数部分。
    """
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """获取值的数值形式，不是有限数值时返回 None"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_number(value: Any) -> bool:
    """判断是否为数值类型（不含布尔值）"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)
