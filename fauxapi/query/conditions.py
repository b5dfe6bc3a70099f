"""
fauxapi 过滤条件

QueryFilter 描述一个 `record[field] <operator> value` 判断，
多个条件之间只有 AND 关系。
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

Record = Dict[str, Any]

OPERATORS = (
    'eq', 'ne',
    'gt', 'gte', 'lt', 'lte',
    'in', 'nin',
    'contains', 'startsWith', 'endsWith',
)


def is_number(value: Any) -> bool:
    """是否为数值（bool 不算数值）"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """
    严格相等

    与 Python 的 == 不同：布尔值只与布尔值相等，数值只与数值相等，
    因此 True 不等于 1，'1' 不等于 1。
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if is_number(left) or is_number(right):
        return is_number(left) and is_number(right) and left == right
    if type(left) is not type(right):
        return False
    return left == right


def contains_strict(values: Iterable[Any], target: Any) -> bool:
    """按严格相等判断 target 是否在 values 中"""
    return any(strict_equals(item, target) for item in values)


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, (list, tuple, set)):
        return [item.lower() if isinstance(item, str) else item for item in value]
    return value


def _numeric(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(field_value: Any, value: Any) -> bool:
        return is_number(field_value) and is_number(value) and compare(field_value, value)
    return check


def _textual(compare: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    def check(field_value: Any, value: Any) -> bool:
        return isinstance(field_value, str) and isinstance(value, str) and compare(field_value, value)
    return check


def _membership(expected: bool) -> Callable[[Any, Any], bool]:
    def check(field_value: Any, value: Any) -> bool:
        if not isinstance(value, (list, tuple, set, frozenset)):
            return False
        return contains_strict(value, field_value) is expected
    return check


_EVALUATORS: Dict[str, Callable[[Any, Any], bool]] = {
    'eq': strict_equals,
    'ne': lambda field_value, value: not strict_equals(field_value, value),
    'gt': _numeric(lambda a, b: a > b),
    'gte': _numeric(lambda a, b: a >= b),
    'lt': _numeric(lambda a, b: a < b),
    'lte': _numeric(lambda a, b: a <= b),
    'in': _membership(True),
    'nin': _membership(False),
    'contains': _textual(lambda a, b: b in a),
    'startsWith': _textual(lambda a, b: a.startswith(b)),
    'endsWith': _textual(lambda a, b: a.endswith(b)),
}


@dataclass(frozen=True)
class QueryFilter:
    """
    单个过滤条件

    Attributes:
        field: 字段名
        operator: 操作符，见 OPERATORS
        value: 比较值（in/nin 为列表）
        case_sensitive: False 时字符串两侧都转小写后比较
    """
    field: str
    operator: str
    value: Any = None
    case_sensitive: bool = True

    def __post_init__(self) -> None:
        if self.operator not in _EVALUATORS:
            raise ValueError(
                f"Unknown filter operator: '{self.operator}'. "
                f"Valid operators: {', '.join(OPERATORS)}"
            )

    def evaluate(self, record: Record) -> bool:
        """
        评估记录是否满足条件

        字段缺失或为 None 时任何操作符都不匹配。
        """
        field_value = record.get(self.field)
        if field_value is None:
            return False

        value = self.value
        if not self.case_sensitive and isinstance(field_value, str):
            field_value = field_value.lower()
            value = _lower(value)

        return _EVALUATORS[self.operator](field_value, value)

    def __repr__(self) -> str:
        return f"QueryFilter({self.field!r} {self.operator} {self.value!r})"


def apply_filter(record: Record, query_filter: QueryFilter) -> bool:
    """判断单条记录是否满足单个条件"""
    return query_filter.evaluate(record)


def apply_filters(
    records: List[Record],
    filters: Optional[Sequence[QueryFilter]] = None
) -> List[Record]:
    """
    返回满足全部条件的记录（AND 组合），保持原有顺序

    Args:
        records: 记录列表
        filters: 条件列表；None 或空列表时原样返回输入

    Returns:
        过滤后的记录列表
    """
    if not filters:
        return records
    return [record for record in records if all(f.evaluate(record) for f in filters)]
