"""
fauxapi 关系解析

根据资源配置中的关系声明，把关联记录内联到源记录上（expand），
或查询某条记录的关联记录（find_related_records）。

支持的关系类型：

    hasOne / hasMany   目标记录的 foreignKey 指向源记录主键
    belongsTo          源记录的 foreignKey 指向目标记录的 targetKey（默认目标主键）
    manyToMany         通过 through 中间集合关联：
                       join[foreignKey] == 源主键，join[targetKey] == 目标主键

展开时对每个关系只扫描一次目标集合，按匹配键分组后写回各源记录。
"""

import copy
import json
import logging
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set

from ..common.exceptions import (
    ExpansionDepthError,
    MissingThroughCollectionError,
    RecordNotFoundError,
    RelationshipNotFoundError,
    ResourceNotFoundError,
    UnsupportedRelationshipTypeError,
)
from ..common.result import Err, Ok, Result
from ..query.conditions import QueryFilter, is_number
from ..query.engine import QueryOptions, run_query
from .config import ApiConfig, DEFAULT_PRIMARY_KEY, Relationship
from .store import Store

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

DEFAULT_MAX_DEPTH = 3


def match_key(value: Any) -> Optional[Hashable]:
    """
    生成遵循严格相等语义的分组键

    True 与 1、'1' 与 1 得到不同的键；None 返回 None（永不匹配）。
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return ('bool', value)
    if is_number(value):
        return ('number', value)
    if isinstance(value, str):
        return ('str', value)
    return ('json', json.dumps(value, sort_keys=True, default=str))


def get_primary_key(config: ApiConfig, resource: str) -> str:
    """资源的主键名，未配置时为 id"""
    found = config.get_resource(resource)
    return found.primary_key if found and found.primary_key else DEFAULT_PRIMARY_KEY


def get_relationships(config: ApiConfig, resource: str) -> Result[List[Relationship], Exception]:
    found = config.get_resource(resource)
    if found is None:
        return Err(ResourceNotFoundError(resource))
    return Ok(list(found.relationships))


def find_relationship(config: ApiConfig, resource: str, name: str) -> Result[Relationship, Exception]:
    """
    查找关系声明

    先按关系名精确匹配，再回退到按目标资源名或外键名匹配。
    """
    relationships = get_relationships(config, resource)
    if not relationships.ok:
        return relationships

    for relationship in relationships.value:
        if relationship.name == name:
            return Ok(relationship)
    for relationship in relationships.value:
        if relationship.matches_alias(name):
            return Ok(relationship)
    return Err(RelationshipNotFoundError(resource, name))


def _target_key(config: ApiConfig, relationship: Relationship) -> str:
    return relationship.target_key or get_primary_key(config, relationship.resource)


def _group_by(records: Sequence[Record], field: str) -> Dict[Hashable, List[Record]]:
    grouped: Dict[Hashable, List[Record]] = {}
    for record in records:
        key = match_key(record.get(field))
        if key is not None:
            grouped.setdefault(key, []).append(record)
    return grouped


def _join_targets(joins: Sequence[Record], source_id: Any, foreign_key: str, join_key: str) -> List[Any]:
    """中间集合里与源记录关联的目标键值，保持中间集合中的顺序"""
    source = match_key(source_id)
    if source is None:
        return []
    return [
        join.get(join_key) for join in joins
        if match_key(join.get(foreign_key)) == source and join.get(join_key) is not None
    ]


def expand_single_level(
    config: ApiConfig,
    store: Store,
    collection: str,
    records: List[Record],
    name: str
) -> Result[List[Record], Exception]:
    """
    展开一层关系，关联数据挂在 name 下

    Args:
        config: 资源配置
        store: Store 实例
        collection: 源集合名
        records: 源记录列表（不会被修改）
        name: 关系名

    Returns:
        新记录列表，顺序与输入一致
    """
    found = find_relationship(config, collection, name)
    if not found.ok:
        return found
    relationship = found.value

    if relationship.type not in ('hasOne', 'hasMany', 'belongsTo', 'manyToMany'):
        return Err(UnsupportedRelationshipTypeError(relationship.type))
    if relationship.type == 'manyToMany' and not relationship.through:
        return Err(MissingThroughCollectionError(collection, name))

    primary_key = get_primary_key(config, collection)
    target_key = _target_key(config, relationship)
    related = store.records_view(relationship.resource)

    expanded: List[Record] = []
    if relationship.type in ('hasOne', 'hasMany'):
        grouped = _group_by(related, relationship.foreign_key)
        for record in records:
            new_record = dict(record)
            matches = grouped.get(match_key(record.get(primary_key)), [])
            if relationship.type == 'hasMany':
                new_record[name] = copy.deepcopy(matches)
            elif matches:
                new_record[name] = copy.deepcopy(matches[0])
            expanded.append(new_record)

    elif relationship.type == 'belongsTo':
        grouped = _group_by(related, target_key)
        for record in records:
            new_record = dict(record)
            matches = grouped.get(match_key(record.get(relationship.foreign_key)), [])
            if matches:
                new_record[name] = copy.deepcopy(matches[0])
            expanded.append(new_record)

    else:
        target_primary_key = get_primary_key(config, relationship.resource)
        joins = store.records_view(relationship.through or '')
        for record in records:
            new_record = dict(record)
            target_ids: Set[Hashable] = {
                match_key(value)
                for value in _join_targets(joins, record.get(primary_key), relationship.foreign_key, target_key)
            }
            new_record[name] = copy.deepcopy([
                item for item in related
                if match_key(item.get(target_primary_key)) in target_ids
            ])
            expanded.append(new_record)

    return Ok(expanded)


def expand_nested(
    config: ApiConfig,
    store: Store,
    collection: str,
    records: List[Record],
    path: str,
    max_depth: int = DEFAULT_MAX_DEPTH
) -> Result[List[Record], Exception]:
    """
    展开点号分隔的关系路径，例如 author.profile

    路径超过 max_depth 层时返回 Err(ExpansionDepthError)。
    """
    segments = path.split('.')
    if len(segments) > max_depth:
        return Err(ExpansionDepthError(path, max_depth))

    first = segments[0]
    expanded = expand_single_level(config, store, collection, records, first)
    if not expanded.ok or len(segments) == 1:
        return expanded

    relationship = find_relationship(config, collection, first)
    if not relationship.ok:
        return relationship
    next_collection = relationship.value.resource
    rest = '.'.join(segments[1:])

    # 收集所有关联记录，一次性展开下一层后按位置写回
    nested_inputs: List[Record] = []
    for record in expanded.value:
        related = record.get(first)
        if isinstance(related, list):
            nested_inputs.extend(related)
        elif isinstance(related, dict):
            nested_inputs.append(related)

    if not nested_inputs:
        return expanded

    nested = expand_nested(config, store, next_collection, nested_inputs, rest, max_depth - 1)
    if not nested.ok:
        return nested

    position = 0
    results: List[Record] = []
    for record in expanded.value:
        related = record.get(first)
        if isinstance(related, list):
            record[first] = nested.value[position:position + len(related)]
            position += len(related)
        elif isinstance(related, dict):
            record[first] = nested.value[position]
            position += 1
        results.append(record)
    return Ok(results)


def expand_relationships(
    config: ApiConfig,
    store: Store,
    collection: str,
    records: List[Record],
    paths: Optional[Sequence[str]] = None,
    max_depth: int = DEFAULT_MAX_DEPTH
) -> Result[List[Record], Exception]:
    """依次展开多个关系路径，任一路径失败即返回该错误"""
    if not paths:
        return Ok(records)

    results = records
    for path in paths:
        expanded = expand_nested(config, store, collection, results, path, max_depth)
        if not expanded.ok:
            logger.debug("Expansion of '%s' on '%s' failed: %s", path, collection, expanded.error)
            return expanded
        results = expanded.value
    return Ok(results)


def find_related_records(
    config: ApiConfig,
    store: Store,
    collection: str,
    pk: Any,
    name: str,
    options: Optional[QueryOptions] = None
) -> Result[List[Record], Exception]:
    """
    查询某条记录的关联记录，options 作用于关联记录集合

    Returns:
        Ok(关联记录列表)；源记录不存在时 Err(RecordNotFoundError)
    """
    found = find_relationship(config, collection, name)
    if not found.ok:
        return found
    relationship = found.value

    primary_key = get_primary_key(config, collection)
    target_key = _target_key(config, relationship)

    source = store.get_record(collection, pk, primary_key)
    if not source.ok:
        return source
    if source.value is None:
        return Err(RecordNotFoundError(collection, pk, primary_key))

    if relationship.type in ('hasOne', 'hasMany'):
        return store.find_related(
            collection, pk, relationship.resource, relationship.foreign_key, options, primary_key,
        )

    if relationship.type == 'belongsTo':
        foreign_id = source.value.get(relationship.foreign_key)
        if foreign_id is None:
            return Ok([])
        target = store.get_record(relationship.resource, foreign_id, target_key)
        if not target.ok:
            return target
        if target.value is None:
            return Ok([])
        return Ok(run_query(
            [target.value], options,
            default_per_page=store.options.default_page_size,
            always_include=store.always_include(relationship.resource),
        ))

    if relationship.type == 'manyToMany':
        if not relationship.through:
            return Err(MissingThroughCollectionError(collection, name))

        target_ids = _join_targets(
            store.records_view(relationship.through),
            source.value.get(primary_key),
            relationship.foreign_key,
            target_key,
        )
        if not target_ids:
            return Ok([])

        base = options or QueryOptions()
        membership = QueryFilter(get_primary_key(config, relationship.resource), 'in', target_ids)
        return store.query(relationship.resource, base.with_filters(list(base.filters) + [membership]))

    return Err(UnsupportedRelationshipTypeError(relationship.type))
