"""
fauxapi 查询引擎

纯函数：排序、分页、字段投影，以及把它们按固定顺序串起来的 run_query。
所有函数都不修改输入列表。
"""

import copy
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .conditions import QueryFilter, Record, apply_filters, is_number


@dataclass(frozen=True)
class QuerySort:
    """排序条件"""
    field: str
    order: str = 'asc'

    def __post_init__(self) -> None:
        if self.order not in ('asc', 'desc'):
            raise ValueError(f"Sort order must be 'asc' or 'desc', got '{self.order}'")

    @property
    def descending(self) -> bool:
        return self.order == 'desc'


@dataclass
class QueryOptions:
    """
    查询选项

    Attributes:
        filters: 过滤条件（AND 组合）
        sort: 排序条件，靠前的优先级更高
        page: 页码（从 1 开始）
        per_page: 每页条数
        fields: 投影字段白名单
        expand: 需要内联展开的关系路径
    """
    filters: List[QueryFilter] = field(default_factory=list)
    sort: List[QuerySort] = field(default_factory=list)
    page: Optional[int] = None
    per_page: Optional[int] = None
    fields: List[str] = field(default_factory=list)
    expand: List[str] = field(default_factory=list)

    @property
    def paginated(self) -> bool:
        return self.page is not None or self.per_page is not None

    def with_filters(self, filters: Sequence[QueryFilter]) -> 'QueryOptions':
        """返回替换了过滤条件的新选项对象"""
        return replace(self, filters=list(filters))

    def without_fields(self) -> 'QueryOptions':
        """返回去掉字段投影的新选项对象"""
        return replace(self, fields=[])


def _sort_key(value: Any) -> Tuple[int, Any]:
    """
    生成可跨类型比较的排序键

    顺序：None < 布尔/数值 < 字符串 < 其他（按 JSON 文本）
    """
    if value is None:
        return (0, 0)
    if isinstance(value, bool) or is_number(value):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, json.dumps(value, sort_keys=True, default=str))


def apply_sorting(records: List[Record], sort: Optional[Sequence[QuerySort]] = None) -> List[Record]:
    """
    稳定排序

    从优先级最低的条件开始依次做稳定排序，相等元素保持原有相对顺序。
    升序时空值在前，降序时空值在后。

    Args:
        records: 记录列表
        sort: 排序条件列表

    Returns:
        新的已排序列表
    """
    if not sort:
        return list(records)

    results = list(records)
    for criterion in reversed(list(sort)):
        results.sort(
            key=lambda record, name=criterion.field: _sort_key(record.get(name)),
            reverse=criterion.descending,
        )
    return results


def apply_pagination(records: List[Record], page: int = 1, per_page: int = 10) -> List[Record]:
    """
    分页（页码从 1 开始）

    page <= 0 视为 1；per_page <= 0 返回空列表；超出范围的页返回空列表。
    """
    if per_page <= 0:
        return []
    if page <= 0:
        page = 1
    start = (page - 1) * per_page
    return records[start:start + per_page]


def select_fields(
    records: List[Record],
    fields: Optional[Sequence[str]] = None,
    always_include: Sequence[str] = ()
) -> List[Record]:
    """
    字段投影

    Args:
        records: 记录列表
        fields: 需要保留的字段；为空时返回深拷贝后的原记录
        always_include: 无论是否在 fields 中都保留的字段（例如主键）

    Returns:
        投影后的新记录列表，记录中不存在的字段直接省略
    """
    if not fields:
        return copy.deepcopy(records)

    wanted: List[str] = list(always_include) + [name for name in fields if name not in always_include]
    projected: List[Record] = []
    for record in records:
        projected.append({
            name: copy.deepcopy(record[name])
            for name in wanted
            if name in record
        })
    return projected


def run_query(
    records: List[Record],
    options: Optional[QueryOptions] = None,
    default_per_page: int = 10,
    always_include: Sequence[str] = ()
) -> List[Record]:
    """
    按 过滤 -> 排序 -> 分页 -> 投影 的顺序执行查询

    只有给出 page 或 per_page 时才分页。
    """
    if options is None:
        return list(records)

    results = apply_filters(records, options.filters)
    results = apply_sorting(results, options.sort)
    if options.paginated:
        page = options.page if options.page is not None else 1
        per_page = options.per_page if options.per_page is not None else default_per_page
        results = apply_pagination(results, page, per_page)
    if options.fields:
        results = select_fields(results, options.fields, always_include)
    return results
