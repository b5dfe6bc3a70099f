"""
请求参数到 QueryOptions 的转换

支持的参数形式：
    ?page=2&perPage=20
    ?sortBy=name.asc,price.desc
    ?fields=id,name
    ?expand=author,comments.author
    ?price[gte]=100&tags[in]=a,b
    ?i:name[eq]=ann          （i: 前缀表示大小写不敏感）
    ?status=published        （普通等值过滤）
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .conditions import OPERATORS, QueryFilter
from .engine import QueryOptions, QuerySort

ParamValue = Union[str, Sequence[str], None]

RESERVED_PARAMS = ('page', 'perPage', 'sortBy', 'fields', 'expand')

_BRACKET_PATTERN = re.compile(r'^([^\[]+)\[([^\]]+)\]$')
_DECIMAL_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')


def _as_list(value: ParamValue) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _split_csv(value: ParamValue) -> List[str]:
    parts: List[str] = []
    for item in _as_list(value):
        parts.extend(part.strip() for part in item.split(','))
    return [part for part in parts if part]


def _parse_int(value: ParamValue) -> Optional[int]:
    items = _as_list(value)
    if not items:
        return None
    try:
        return int(items[0])
    except ValueError:
        return None


def coerce_scalar(value: str) -> Any:
    """普通十进制数字形式的字符串转为 int/float，其余（含 1_000、nan、inf）保持字符串"""
    text = value.strip()
    if not _DECIMAL_PATTERN.match(text):
        return value
    if '.' in text:
        return float(text)
    return int(text)


def parse_sort(value: ParamValue) -> List[QuerySort]:
    """解析 sortBy=name.asc,price.desc，未指定方向时默认升序"""
    sort: List[QuerySort] = []
    for part in _split_csv(value):
        if '.' in part:
            name, _, order = part.partition('.')
            if name and order in ('asc', 'desc'):
                sort.append(QuerySort(name, order))
        else:
            sort.append(QuerySort(part, 'asc'))
    return sort


def parse_query_options(
    params: Mapping[str, ParamValue],
    default_per_page: int = 10,
    max_per_page: int = 100
) -> QueryOptions:
    """
    把请求查询参数转换为 QueryOptions

    Args:
        params: 查询参数（值可以是字符串或字符串列表）
        default_per_page: 只给出 page 时的每页条数
        max_per_page: perPage 的上限

    Returns:
        QueryOptions
    """
    options = QueryOptions()

    page = _parse_int(params.get('page'))
    if page is not None:
        options.page = max(1, page)

    per_page = _parse_int(params.get('perPage'))
    if per_page is not None:
        options.per_page = min(max(1, per_page), max_per_page)
    elif options.page is not None:
        options.per_page = default_per_page

    options.sort = parse_sort(params.get('sortBy'))
    options.fields = _split_csv(params.get('fields'))
    options.expand = _split_csv(params.get('expand'))

    filters: List[QueryFilter] = []
    for key, raw in params.items():
        if key in RESERVED_PARAMS:
            continue
        values = _as_list(raw)
        if not values or not values[0]:
            continue
        value = values[0]

        match = _BRACKET_PATTERN.match(key)
        if match is None:
            filters.append(QueryFilter(key, 'eq', value))
            continue

        name, operator = match.group(1), match.group(2)
        if operator not in OPERATORS:
            continue

        case_sensitive = not name.startswith('i:')
        if not case_sensitive:
            name = name[2:]

        filter_value: Any
        if operator in ('in', 'nin'):
            filter_value = [coerce_scalar(item.strip()) for item in value.split(',')]
        else:
            filter_value = coerce_scalar(value)

        filters.append(QueryFilter(name, operator, filter_value, case_sensitive))

    options.filters = filters
    return options
