"""
主键生成

集合中只要有一条记录的主键是规范格式的 UUID 字符串，就按 UUID 集合处理；
否则按整数自增处理。
"""

import re
import uuid
from typing import Any, Dict, List, Optional, Union

from ..query.conditions import is_number

Record = Dict[str, Any]

UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE,
)


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def is_uuid_primary_key(records: Optional[List[Record]], primary_key: str = 'id') -> bool:
    """集合中是否存在 UUID 形式的主键"""
    if not records:
        return False
    return any(is_uuid(record.get(primary_key)) for record in records)


def next_numeric_id(records: Optional[List[Record]], primary_key: str = 'id') -> Union[int, float]:
    """
    数值主键的下一个值

    忽略非数值的主键（包括数字形式的字符串和布尔值），取最大值加一；
    没有任何数值主键时返回 1。
    """
    numeric = [
        record[primary_key]
        for record in records or []
        if is_number(record.get(primary_key))
    ]
    if not numeric:
        return 1

    next_id = max(numeric) + 1
    if isinstance(next_id, float) and next_id.is_integer():
        return int(next_id)
    return next_id


def generate_id(records: Optional[List[Record]], primary_key: str = 'id') -> Union[int, float, str]:
    """
    为新记录生成主键

    UUID 集合生成随机 v4 UUID（不与现有值比对），否则返回数值自增值。
    """
    if is_uuid_primary_key(records, primary_key):
        return str(uuid.uuid4())
    return next_numeric_id(records, primary_key)
