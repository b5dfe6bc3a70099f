"""
fauxapi 记录写操作

create / update / delete 都在 Store 写锁内执行：
默认值 -> 主键 -> 敏感字段摘要 -> 校验 -> 写入 -> 落盘，
落盘失败时集合回滚到写入前的状态。
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..common.exceptions import DuplicateKeyError, ValidationFailedError
from ..common.options import ValidatorOptions
from ..common.result import Err, Ok, Result
from ..query.conditions import strict_equals
from .config import ApiConfig, ResourceField
from .keys import generate_id
from .special_fields import (
    MODE_INSERT,
    apply_special_fields,
    apply_special_fields_for_update,
    hash_sensitive_fields,
)
from .store import Store
from .validation import validate_record

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
UserId = Union[int, str, None]
CascadeRule = Tuple[str, str]


class RecordMutator:
    """集合记录的增删改"""

    def __init__(
        self,
        store: Store,
        config: Optional[ApiConfig] = None,
        validator_options: Optional[ValidatorOptions] = None
    ):
        self.store = store
        self.config = config or store.config
        self.validator_options = validator_options or ValidatorOptions()

    def _fields(self, collection: str) -> List[ResourceField]:
        resource = self.config.get_resource(collection)
        return list(resource.fields) if resource else []

    def _validate(
        self,
        collection: str,
        record: Record,
        existing: Sequence[Record],
        is_update: bool,
        primary_key: str
    ) -> Optional[ValidationFailedError]:
        fields = self._fields(collection)
        if not fields:
            return None
        result = validate_record(
            record, fields, collection, existing,
            is_update=is_update, primary_key=primary_key, options=self.validator_options,
        )
        if result.ok:
            return None
        return ValidationFailedError(collection, result.error)

    def create(self, collection: str, record: Record, user_id: UserId = None) -> Result[Record, Exception]:
        """
        新建记录

        Args:
            collection: 集合名（不存在时自动创建）
            record: 记录数据
            user_id: $userId 默认值使用的用户 ID

        Returns:
            Ok(新记录副本)，或 Err(DuplicateKeyError / ValidationFailedError / SerializationError)
        """
        with self.store.writing():
            self.store.ensure_collection(collection)
            primary_key = self.store.get_primary_key(collection)
            existing = self.store.records_view(collection)
            fields = self._fields(collection)

            data = apply_special_fields(record, fields, existing, MODE_INSERT, user_id)
            data = hash_sensitive_fields(data, fields)

            if data.get(primary_key) is None:
                data[primary_key] = generate_id(existing, primary_key)
            elif self.store.find_record(collection, data[primary_key], primary_key) is not None:
                return Err(DuplicateKeyError(collection, data[primary_key], primary_key))

            error = self._validate(collection, data, existing, False, primary_key)
            if error is not None:
                logger.debug("Rejected create in '%s': %s", collection, error.message)
                return Err(error)

            before = self.store.snapshot()
            created = self.store.append_record(collection, data)
            logger.debug("Created %s=%r in '%s'", primary_key, created[primary_key], collection)
            return self.store.commit(created, before)

    def update(
        self,
        collection: str,
        pk: Any,
        patch: Record,
        primary_key: Optional[str] = None,
        merge: bool = True,
        user_id: UserId = None
    ) -> Result[Optional[Record], Exception]:
        """
        更新记录

        Args:
            collection: 集合名
            pk: 主键值
            patch: 新数据
            primary_key: 主键字段名，None 时取资源配置
            merge: True 合并到原记录上，False 整体替换
            user_id: 调用方用户 ID

        Returns:
            Ok(更新后的记录副本)；集合或记录不存在时 Ok(None)
        """
        with self.store.writing():
            self.store.ensure_collection(collection)
            key = self.store.get_primary_key(collection, primary_key)
            current = self.store.find_record(collection, pk, key)
            if current is None:
                return Ok(None)

            existing = self.store.records_view(collection)
            fields = self._fields(collection)

            data: Record = copy.deepcopy(current) if merge else {}
            data.update(copy.deepcopy(patch))
            data[key] = current[key]
            data = apply_special_fields_for_update(data, fields, existing, user_id)
            data = hash_sensitive_fields(data, fields)

            error = self._validate(collection, data, existing, True, key)
            if error is not None:
                logger.debug("Rejected update of %s=%r in '%s': %s", key, pk, collection, error.message)
                return Err(error)

            before = self.store.snapshot()
            self.store.replace_record(collection, pk, data, key)
            logger.debug("Updated %s=%r in '%s' (merge=%s)", key, pk, collection, merge)
            return self.store.commit(copy.deepcopy(data), before)

    def replace(self, collection: str, pk: Any, record: Record, user_id: UserId = None) -> Result[Optional[Record], Exception]:
        """整体替换（主键保持不变）"""
        return self.update(collection, pk, record, merge=False, user_id=user_id)

    def patch(self, collection: str, pk: Any, changes: Record, user_id: UserId = None) -> Result[Optional[Record], Exception]:
        """部分更新"""
        return self.update(collection, pk, changes, merge=True, user_id=user_id)

    def delete(
        self,
        collection: str,
        pk: Any,
        primary_key: Optional[str] = None,
        cascade: Optional[Sequence[CascadeRule]] = None
    ) -> Result[bool, Exception]:
        """
        删除记录

        Args:
            collection: 集合名
            pk: 主键值
            primary_key: 主键字段名
            cascade: (集合名, 外键名) 列表，外键等于 pk 的记录一并删除

        Returns:
            Ok(True)；记录不存在时 Ok(False)
        """
        with self.store.writing():
            self.store.ensure_collection(collection)
            key = self.store.get_primary_key(collection, primary_key)
            if self.store.find_record(collection, pk, key) is None:
                return Ok(False)

            before = self.store.snapshot()
            self.store.remove_records(collection, lambda record: strict_equals(record.get(key), pk))

            for related_collection, foreign_key in cascade or []:
                removed = self.store.remove_records(
                    related_collection,
                    lambda record, fk=foreign_key: strict_equals(record.get(fk), pk),
                )
                if removed:
                    logger.debug(
                        "Cascade removed %d record(s) from '%s' via %s", removed, related_collection, foreign_key,
                    )

            logger.debug("Deleted %s=%r from '%s'", key, pk, collection)
            return self.store.commit(True, before)
