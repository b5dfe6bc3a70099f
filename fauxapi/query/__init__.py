"""
fauxapi 查询子系统

包含过滤条件、排序/分页/投影引擎和请求参数解析
"""

from .conditions import QueryFilter, OPERATORS, apply_filter, apply_filters, strict_equals
from .engine import (
    QuerySort,
    QueryOptions,
    apply_sorting,
    apply_pagination,
    select_fields,
    run_query,
)
from .params import parse_query_options

__all__ = [
    # Conditions
    'QueryFilter',
    'OPERATORS',
    'apply_filter',
    'apply_filters',
    'strict_equals',
    # Engine
    'QuerySort',
    'QueryOptions',
    'apply_sorting',
    'apply_pagination',
    'select_fields',
    'run_query',
    # Params
    'parse_query_options',
]
