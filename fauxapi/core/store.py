"""
fauxapi 存储

Store 是集合数据的唯一持有者：集合名 -> 记录列表。

- 读操作返回深拷贝；遍历集合字典时短暂持锁，其余读操作不加锁
- 写操作在 writing() 锁内进行，以写时复制的方式替换整个集合列表，
  已存储的记录对象永远不会被原地修改
- 引用不存在的集合时自动创建空集合（ensure_collection）
"""

import copy
import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple, Union, TYPE_CHECKING

from ..common.exceptions import SerializationError, describe
from ..common.options import StoreOptions
from ..common.result import Err, Ok, Result
from ..query.conditions import strict_equals
from ..query.engine import QueryOptions, run_query
from .config import ApiConfig
from .keys import generate_id

if TYPE_CHECKING:
    from ..backends.base import StorageBackend

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Collections = Dict[str, List[Record]]
Snapshot = Tuple[Collections, Dict[str, float]]


class Store:
    """内存集合存储"""

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        backend: Optional['StorageBackend'] = None,
        options: Optional[StoreOptions] = None,
    ):
        """
        初始化存储

        Args:
            config: 资源配置（提供各集合的主键名和初始数据）
            backend: 持久化后端，None 表示不持久化
            options: Store 配置选项
        """
        self.config = config or ApiConfig()
        self.backend = backend
        self.options = options or StoreOptions()
        self._collections: Collections = {}
        self._last_modified: Dict[str, float] = {}
        self._lock = threading.RLock()
        self._dirty = False

    # ------------------------------------------------------------------
    # 集合
    # ------------------------------------------------------------------

    def get_primary_key(self, collection: str, primary_key: Optional[str] = None) -> str:
        """显式给出的主键名优先，否则取资源配置，默认 id"""
        return primary_key or self.config.primary_key_for(collection)

    def ensure_collection(self, name: str) -> bool:
        """
        集合不存在时创建空集合

        Returns:
            是否新建了集合
        """
        if name in self._collections:
            return False
        with self._lock:
            if name in self._collections:
                return False
            self._collections[name] = []
            self._last_modified[name] = time.time()
            self._dirty = True
            logger.debug("Auto-created collection '%s'", name)
            return True

    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def collection_names(self) -> List[str]:
        with self._lock:
            return list(self._collections)

    # ------------------------------------------------------------------
    # 读
    # ------------------------------------------------------------------

    def get_data(self, collection: Optional[str] = None) -> Result[Union[Collections, List[Record]], Exception]:
        """全部集合，或指定集合（不存在时自动创建）"""
        if collection is not None:
            return self.get_collection(collection)
        with self._lock:
            collections = dict(self._collections)
        return Ok(copy.deepcopy(collections))

    def get_collection(self, name: str) -> Result[List[Record], Exception]:
        self.ensure_collection(name)
        return Ok(copy.deepcopy(self._collections[name]))

    def get_record(
        self,
        collection: str,
        pk: Any,
        primary_key: Optional[str] = None
    ) -> Result[Optional[Record], Exception]:
        """
        按主键取记录

        Returns:
            Ok(记录副本)，记录不存在时为 Ok(None)
        """
        self.ensure_collection(collection)
        key = self.get_primary_key(collection, primary_key)
        record = self.find_record(collection, pk, key)
        return Ok(copy.deepcopy(record) if record is not None else None)

    def query(self, collection: str, options: Optional[QueryOptions] = None) -> Result[List[Record], Exception]:
        """对集合执行 过滤 -> 排序 -> 分页 -> 投影"""
        self.ensure_collection(collection)
        records = self._collections[collection]
        results = run_query(
            records,
            options,
            default_per_page=self.options.default_page_size,
            always_include=self.always_include(collection),
        )
        return Ok(copy.deepcopy(results))

    def find_related(
        self,
        collection: str,
        pk: Any,
        related_collection: str,
        foreign_key: str,
        options: Optional[QueryOptions] = None,
        primary_key: Optional[str] = None
    ) -> Result[List[Record], Exception]:
        """
        取 related_collection 中 foreign_key 指向源记录的记录

        源集合或目标集合不存在时自动创建；源记录不存在时返回 Ok([])。
        """
        self.ensure_collection(collection)
        self.ensure_collection(related_collection)

        key = self.get_primary_key(collection, primary_key)
        source = self.find_record(collection, pk, key)
        if source is None:
            return Ok([])

        source_id = source.get(key)
        related = [
            record for record in self._collections[related_collection]
            if strict_equals(record.get(foreign_key), source_id)
        ]
        results = run_query(
            related,
            options,
            default_per_page=self.options.default_page_size,
            always_include=self.always_include(related_collection),
        )
        return Ok(copy.deepcopy(results))

    def always_include(self, collection: str) -> List[str]:
        """投影时始终保留的字段（由 projection_includes_primary_key 决定）"""
        if self.options.projection_includes_primary_key:
            return [self.get_primary_key(collection)]
        return []

    def records_view(self, collection: str) -> List[Record]:
        """
        集合当前列表的只读引用

        调用方不得修改返回的列表或其中的记录。
        """
        self.ensure_collection(collection)
        return self._collections[collection]

    def find_record(self, collection: str, pk: Any, primary_key: str) -> Optional[Record]:
        """返回存储中的记录对象本身（只读）"""
        for record in self._collections.get(collection, ()):
            if strict_equals(record.get(primary_key), pk):
                return record
        return None

    # ------------------------------------------------------------------
    # 写
    # ------------------------------------------------------------------

    @contextmanager
    def writing(self) -> Generator['Store', None, None]:
        """
        写锁上下文管理器（可重入）

        Example:
            with store.writing():
                store.append_record('users', {'name': 'Alice'})
        """
        with self._lock:
            yield self

    def snapshot(self) -> Snapshot:
        """
        当前全部集合列表的引用快照

        集合列表以写时复制方式替换，保存引用即可在 rollback 时恢复。
        """
        with self._lock:
            return dict(self._collections), dict(self._last_modified)

    def rollback(self, snapshot: Snapshot) -> None:
        """恢复到 snapshot 时的状态"""
        collections, last_modified = snapshot
        with self._lock:
            self._collections = dict(collections)
            self._last_modified = dict(last_modified)
            logger.debug("Rolled back store to %d collection(s)", len(collections))

    def _replace_collection(self, name: str, records: List[Record]) -> None:
        self._collections[name] = records
        self._last_modified[name] = time.time()
        self._dirty = True

    def append_record(self, collection: str, record: Record) -> Record:
        """追加记录的深拷贝，返回另一份深拷贝"""
        with self._lock:
            self.ensure_collection(collection)
            stored = copy.deepcopy(record)
            self._replace_collection(collection, self._collections[collection] + [stored])
            return copy.deepcopy(stored)

    def replace_record(self, collection: str, pk: Any, record: Record, primary_key: str) -> bool:
        """用新记录替换主键匹配的记录，返回是否找到"""
        with self._lock:
            records = self._collections.get(collection, [])
            for index, existing in enumerate(records):
                if strict_equals(existing.get(primary_key), pk):
                    updated = list(records)
                    updated[index] = copy.deepcopy(record)
                    self._replace_collection(collection, updated)
                    return True
            return False

    def remove_records(self, collection: str, predicate: Callable[[Record], bool]) -> int:
        """删除满足条件的记录，返回删除数量"""
        with self._lock:
            records = self._collections.get(collection, [])
            kept = [record for record in records if not predicate(record)]
            removed = len(records) - len(kept)
            if removed:
                self._replace_collection(collection, kept)
            return removed

    def set_record(
        self,
        collection: str,
        record: Record,
        primary_key: Optional[str] = None
    ) -> Result[Record, Exception]:
        """
        按主键插入或覆盖记录（不做校验）

        记录缺少主键时自动生成。
        """
        key = self.get_primary_key(collection, primary_key)
        with self._lock:
            before = self.snapshot()
            self.ensure_collection(collection)
            record = dict(record)
            if record.get(key) is None:
                record[key] = generate_id(self._collections[collection], key)
            if not self.replace_record(collection, record[key], record, key):
                self.append_record(collection, record)
            return self.commit(copy.deepcopy(record), before)

    def reset(self, data: Optional[Collections] = None) -> Result[None, Exception]:
        """用给定数据替换全部状态"""
        with self._lock:
            before = self.snapshot()
            self._collections = copy.deepcopy(dict(data or {}))
            now = time.time()
            self._last_modified = {name: now for name in self._collections}
            self._dirty = True
            logger.info("Store reset with %d collection(s)", len(self._collections))
            return self.commit(None, before)

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def commit(self, value: Any, snapshot: Optional[Snapshot] = None) -> Result[Any, Exception]:
        """
        写操作成功后调用：auto_save 时落盘

        Args:
            value: 成功时返回的值
            snapshot: 写操作之前的快照；落盘失败时回滚到该状态

        Returns:
            Ok(value)，落盘失败时为 Err(SerializationError)
        """
        if self.options.auto_save:
            flushed = self.flush()
            if not flushed.ok:
                if snapshot is not None:
                    self.rollback(snapshot)
                return flushed
        return Ok(value)

    def load(self) -> Result[List[str], Exception]:
        """
        从后端加载数据；后端没有数据时使用配置中的初始数据并写入后端

        Returns:
            Ok(集合名列表) 或 Err(SerializationError)
        """
        with self._lock:
            if self.backend is not None and self.backend.exists():
                try:
                    data = self.backend.load()
                except SerializationError as e:
                    logger.warning("Failed to load data: %s", describe(e))
                    return Err(e)
                self._collections = data
                self._dirty = False
            else:
                self._collections = copy.deepcopy(self.config.initial_data())
                self._dirty = True

            now = time.time()
            self._last_modified = {name: now for name in self._collections}
            for resource in self.config.resources:
                self.ensure_collection(resource.name)

            if self._dirty and self.backend is not None:
                flushed = self.flush()
                if not flushed.ok:
                    return flushed

            logger.info("Store loaded %d collection(s)", len(self._collections))
            return Ok(self.collection_names())

    def flush(self) -> Result[bool, Exception]:
        """
        把有变更的数据写入后端

        Returns:
            Ok(是否实际写入) 或 Err(SerializationError)
        """
        with self._lock:
            if self.backend is None or not self._dirty:
                return Ok(False)
            try:
                self.backend.save(self._collections)
            except SerializationError as e:
                logger.warning("Failed to flush store: %s", describe(e))
                return Err(e)
            self._dirty = False
            return Ok(True)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def stats(self) -> Dict[str, Any]:
        """各集合记录数与最后修改时间"""
        collections: Dict[str, Dict[str, Any]] = {}
        for name, records in list(self._collections.items()):
            modified = self._last_modified.get(name)
            collections[name] = {
                'count': len(records),
                'last_modified': (
                    datetime.fromtimestamp(modified, timezone.utc).isoformat() if modified else None
                ),
            }
        return {
            'collections': collections,
            'total_records': sum(item['count'] for item in collections.values()),
        }

    def __repr__(self) -> str:
        return f"Store(collections={len(self._collections)}, backend={self.backend!r})"
