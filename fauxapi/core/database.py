"""
fauxapi 数据库门面

Database 把配置、Store、后端、写操作和关系解析组装在一起，
按资源名提供 ResourceOperations：

    db = Database('api.yml', file_path='db.json')
    users = db.resource('users').unwrap()

    created = users.create({'name': 'Ann', 'email': 'ann@example.com'})
    if not created.ok:
        print(created.error.to_dict())

    page = users.find_all(QueryOptions(page=1, per_page=20, expand=['posts']))
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..backends import get_backend
from ..backends.base import StorageBackend
from ..common.exceptions import ResourceNotFoundError, SerializationError, describe
from ..common.options import BackendOptions, StoreOptions, ValidatorOptions
from ..common.result import Err, Ok, Result
from ..query.conditions import QueryFilter
from ..query.engine import QueryOptions, select_fields
from ..query.params import ParamValue, parse_query_options
from .config import ApiConfig, load_config, parse_config
from .mutator import RecordMutator, UserId
from .relations import expand_relationships, find_related_records, get_relationships
from .store import Store

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
ConfigSource = Union[ApiConfig, Mapping[str, Any], str, Path]


def _resolve_config(config: ConfigSource) -> ApiConfig:
    if isinstance(config, ApiConfig):
        return config
    if isinstance(config, (str, Path)):
        return load_config(config)
    return parse_config(config)


class ResourceOperations:
    """单个资源的 CRUD 操作"""

    def __init__(self, database: 'Database', name: str):
        self.database = database
        self.name = name
        self.primary_key = database.store.get_primary_key(name)

    @property
    def _store(self) -> Store:
        return self.database.store

    def find_all(self, options: Optional[QueryOptions] = None) -> Result[List[Record], Exception]:
        """
        查询记录，options.expand 中的关系路径会被内联展开

        有展开路径时先展开再投影，投影保留 fields 与各路径的首段关系名。
        """
        if options is None or not options.expand:
            return self._store.query(self.name, options)

        result = self._store.query(self.name, options.without_fields())
        if not result.ok:
            return result
        expanded = expand_relationships(
            self.database.config, self._store, self.name, result.value, options.expand,
            max_depth=self._store.options.max_expand_depth,
        )
        if not expanded.ok or not options.fields:
            return expanded

        fields = list(options.fields)
        for path in options.expand:
            name = path.split('.')[0]
            if name not in fields:
                fields.append(name)
        return Ok(select_fields(expanded.value, fields, self._store.always_include(self.name)))

    def find_by_id(self, pk: Any, expand: Optional[List[str]] = None) -> Result[Optional[Record], Exception]:
        """按主键取记录，不存在时 Ok(None)"""
        result = self._store.get_record(self.name, pk, self.primary_key)
        if not result.ok or result.value is None or not expand:
            return result
        expanded = expand_relationships(
            self.database.config, self._store, self.name, [result.value], expand,
            max_depth=self._store.options.max_expand_depth,
        )
        if not expanded.ok:
            return expanded
        return Ok(expanded.value[0])

    def find_one(self, query: Mapping[str, Any]) -> Result[Optional[Record], Exception]:
        """返回第一条所有字段都严格相等的记录，没有时 Ok(None)"""
        filters = [QueryFilter(field, 'eq', value) for field, value in query.items()]
        result = self.find_all(QueryOptions(filters=filters))
        if not result.ok:
            return result
        return Ok(result.value[0] if result.value else None)

    def query(self, params: Mapping[str, ParamValue]) -> Result[List[Record], Exception]:
        """按请求查询参数查询"""
        options = parse_query_options(
            params,
            default_per_page=self._store.options.default_page_size,
            max_per_page=self._store.options.max_page_size,
        )
        return self.find_all(options)

    def create(self, data: Record, user_id: UserId = None) -> Result[Record, Exception]:
        return self.database.mutator.create(self.name, data, user_id=user_id)

    def update(self, pk: Any, data: Record, user_id: UserId = None) -> Result[Optional[Record], Exception]:
        """整体替换，主键保持不变"""
        return self.database.mutator.update(self.name, pk, data, self.primary_key, merge=False, user_id=user_id)

    def patch(self, pk: Any, data: Record, user_id: UserId = None) -> Result[Optional[Record], Exception]:
        """部分更新"""
        return self.database.mutator.update(self.name, pk, data, self.primary_key, merge=True, user_id=user_id)

    def delete(self, pk: Any) -> Result[bool, Exception]:
        """删除记录，并级联删除 hasOne / hasMany 关系上的从属记录"""
        cascade = []
        relationships = get_relationships(self.database.config, self.name)
        if relationships.ok:
            cascade = [
                (relationship.resource, relationship.foreign_key)
                for relationship in relationships.value
                if relationship.type in ('hasOne', 'hasMany')
            ]
        return self.database.mutator.delete(self.name, pk, self.primary_key, cascade)

    def find_related(
        self,
        pk: Any,
        relationship: str,
        options: Optional[QueryOptions] = None
    ) -> Result[List[Record], Exception]:
        return find_related_records(self.database.config, self._store, self.name, pk, relationship, options)

    def count(self) -> int:
        return len(self._store.records_view(self.name))

    def __repr__(self) -> str:
        return f"ResourceOperations(name={self.name!r}, primary_key={self.primary_key!r})"


class Database:
    """mock API 的数据层入口"""

    def __init__(
        self,
        config: ConfigSource,
        file_path: Optional[Union[str, Path]] = None,
        engine: str = 'json',
        store_options: Optional[StoreOptions] = None,
        validator_options: Optional[ValidatorOptions] = None,
        backend_options: Optional[BackendOptions] = None,
    ):
        """
        初始化数据库并加载数据

        Args:
            config: ApiConfig、配置字典或 .yml/.yaml/.json 配置文件路径
            file_path: 数据文件路径；json 引擎下为 None 表示纯内存不落盘
            engine: 后端引擎名称（'json', 'memory'）
            store_options: Store 配置选项
            validator_options: 校验选项
            backend_options: 后端配置选项，None 时使用引擎默认值

        Raises:
            ConfigurationError: 配置无效或引擎不可用
            SerializationError: 已有数据文件无法加载
        """
        self.config = _resolve_config(config)
        self.file_path = file_path
        self.engine_name = engine

        backend: Optional[StorageBackend] = None
        if engine != 'json' or file_path is not None:
            backend = get_backend(engine, file_path, backend_options)

        self.store = Store(self.config, backend, store_options)
        self.mutator = RecordMutator(self.store, self.config, validator_options)
        self.store.load().unwrap()
        logger.info(
            "Database ready: %d resource(s), engine=%s, file=%s",
            len(self.config.resources), engine, file_path,
        )

    @property
    def backend(self) -> Optional[StorageBackend]:
        return self.store.backend

    def resource_names(self) -> List[str]:
        return [resource.name for resource in self.config.resources]

    def resource(self, name: str) -> Result[ResourceOperations, Exception]:
        """按名称取资源操作对象，未配置的资源返回 Err(ResourceNotFoundError)"""
        if self.config.get_resource(name) is None:
            return Err(ResourceNotFoundError(name))
        return Ok(ResourceOperations(self, name))

    def get_data(self, collection: Optional[str] = None) -> Result[Any, Exception]:
        return self.store.get_data(collection)

    def stats(self) -> Dict[str, Dict[str, Any]]:
        """各配置资源的记录数与最后修改时间"""
        collections = self.store.stats()['collections']
        return {
            name: collections.get(name, {'count': 0, 'last_modified': None})
            for name in self.resource_names()
        }

    def reset(self, data: Optional[Mapping[str, List[Record]]] = None) -> Result[None, Exception]:
        """清空（或替换为给定数据）并落盘"""
        with self.store.writing():
            result = self.store.reset(dict(data or {}))
            if result.ok and not self.store.options.auto_save:
                flushed = self.store.flush()
                if not flushed.ok:
                    return flushed
            return result

    def backup(self, target: Optional[Union[str, Path]] = None) -> Result[str, Exception]:
        """先落盘再备份，返回备份位置"""
        if self.backend is None:
            return Err(SerializationError("Cannot backup: database has no storage backend"))
        with self.store.writing():
            flushed = self.store.flush()
            if not flushed.ok:
                return flushed
            try:
                return Ok(self.backend.backup(target))
            except SerializationError as e:
                logger.warning("Backup failed: %s", describe(e))
                return Err(e)

    def restore(self, source: Union[str, Path]) -> Result[None, Exception]:
        """从备份恢复后端数据并重新载入 Store"""
        if self.backend is None:
            return Err(SerializationError("Cannot restore: database has no storage backend"))
        with self.store.writing():
            try:
                self.backend.restore(source)
            except SerializationError as e:
                logger.warning("Restore failed: %s", describe(e))
                return Err(e)
            loaded = self.store.load()
            if not loaded.ok:
                return loaded
            return Ok(None)

    def flush(self) -> Result[bool, Exception]:
        return self.store.flush()

    def close(self) -> None:
        """落盘未保存的变更"""
        flushed = self.store.flush()
        if not flushed.ok:
            logger.warning("Unsaved changes on close: %s", describe(flushed.error))

    def __enter__(self) -> 'Database':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database(resources={len(self.config.resources)}, engine={self.engine_name!r})"
