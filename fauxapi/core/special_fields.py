"""
特殊默认值处理

字段的 defaultValue 除普通字面量外，还支持以下占位符：

    $now        当前 UTC 时间（ISO-8601 字符串）
    $uuid       随机 v4 UUID
    $increment  该字段现有最大数值 + 1
    $userId     调用方提供的用户 ID（未提供时为 None）
    $hash       写入时对字段值做 SHA-256 摘要，见 hash_sensitive_fields
"""

import copy
import hashlib
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Union

from ..query.conditions import is_number
from .config import ResourceField

Record = Dict[str, Any]
UserId = Union[int, str, None]

MODE_INSERT = 'insert'
MODE_UPDATE = 'update'
MODE_ALWAYS = 'always'
SPECIAL_FIELD_MODES = (MODE_INSERT, MODE_UPDATE, MODE_ALWAYS)

HASH_TOKEN = '$hash'

_HASH_PATTERN = re.compile(r'^[a-f0-9]{40,128}$', re.IGNORECASE)


def now_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_increment(records: Optional[Sequence[Record]], field_name: str) -> Union[int, float]:
    """字段现有最大数值 + 1，非数值按 0 计"""
    values = [
        record.get(field_name) if is_number(record.get(field_name)) else 0
        for record in records or []
    ]
    if not values:
        return 1
    return max(values) + 1


def hash_value(value: str) -> str:
    """SHA-256 十六进制摘要，空字符串保持为空"""
    if not value:
        return ''
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


def _resolve_default(
    default_value: Any,
    field_name: str,
    existing_records: Sequence[Record],
    user_id: UserId
) -> Any:
    if default_value == '$now':
        return now_timestamp()
    if default_value == '$uuid':
        return str(uuid.uuid4())
    if default_value == '$userId':
        return user_id
    if default_value == '$increment':
        return next_increment(existing_records, field_name)
    return copy.deepcopy(default_value)


def apply_special_fields(
    record: Record,
    fields: Sequence[ResourceField],
    existing_records: Optional[Sequence[Record]] = None,
    mode: str = MODE_INSERT,
    user_id: UserId = None
) -> Record:
    """
    按字段声明填充默认值

    Args:
        record: 原始记录（不会被修改）
        fields: 字段声明
        existing_records: 集合中已有的记录（$increment 使用）
        mode: insert 只填充缺失字段；always 无论是否已有值都覆盖；
            update 不填充默认值
        user_id: $userId 使用的用户 ID

    Returns:
        填充后的新记录
    """
    if mode not in SPECIAL_FIELD_MODES:
        raise ValueError(f"Unknown special field mode: '{mode}'")

    result = dict(record)
    if mode == MODE_UPDATE:
        return result

    existing = existing_records or []
    for field in fields:
        if not field.has_default or field.default_value == HASH_TOKEN:
            continue
        if mode == MODE_INSERT and field.name in result:
            continue
        result[field.name] = _resolve_default(field.default_value, field.name, existing, user_id)

    return result


def apply_special_fields_for_update(
    record: Record,
    fields: Sequence[ResourceField],
    existing_records: Optional[Sequence[Record]] = None,
    user_id: UserId = None
) -> Record:
    """更新时刷新声明为 $now 的 updatedAt 字段"""
    result = dict(record)
    for field in fields:
        if field.name == 'updatedAt' and field.default_value == '$now':
            result['updatedAt'] = now_timestamp()
            break
    return apply_special_fields(result, fields, existing_records, MODE_UPDATE, user_id)


def looks_hashed(value: str) -> bool:
    return _HASH_PATTERN.match(value) is not None


def hash_sensitive_fields(record: Record, fields: Sequence[ResourceField]) -> Record:
    """
    对敏感字段做摘要

    defaultValue 为 $hash 的字段，以及字段名包含 password 的字段，
    其字符串值替换为 SHA-256 摘要；已经是十六进制摘要形式的值保持不变。
    """
    result = dict(record)
    for field in fields:
        value = result.get(field.name)
        if not isinstance(value, str):
            continue
        sensitive = field.default_value == HASH_TOKEN or 'password' in field.name.lower()
        if sensitive and not looks_hashed(value):
            result[field.name] = hash_value(value)
    return result
