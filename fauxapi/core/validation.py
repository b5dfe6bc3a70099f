"""
记录校验

按字段声明校验候选记录，收集全部违规项后一次性返回，不会在第一个错误处停止。
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..common.options import ValidatorOptions
from ..common.result import Err, Ok, Result
from ..query.conditions import contains_strict, is_number, strict_equals
from .config import ResourceField

Record = Dict[str, Any]


@dataclass(frozen=True)
class ValidationIssue:
    """单个违规项"""
    field: str
    rule: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {'field': self.field, 'rule': self.rule, 'message': self.message}


def _check_enum(field: ResourceField, value: Any, issues: List[ValidationIssue]) -> None:
    if field.enum and not contains_strict(field.enum, value):
        issues.append(ValidationIssue(
            field.name, 'enum',
            f"Value for '{field.name}' must be one of: {', '.join(str(v) for v in field.enum)}",
        ))


def _check_number(field: ResourceField, value: Any, issues: List[ValidationIssue]) -> None:
    if field.type != 'number' or not is_number(value):
        return
    if field.min is not None and value < field.min:
        issues.append(ValidationIssue(
            field.name, 'min', f"Value for '{field.name}' must be at least {field.min}",
        ))
    if field.max is not None and value > field.max:
        issues.append(ValidationIssue(
            field.name, 'max', f"Value for '{field.name}' must be at most {field.max}",
        ))


def _check_string(field: ResourceField, value: Any, issues: List[ValidationIssue]) -> None:
    if field.type != 'string' or not isinstance(value, str):
        return
    if field.min_length is not None and len(value) < field.min_length:
        issues.append(ValidationIssue(
            field.name, 'minLength',
            f"Length of '{field.name}' must be at least {field.min_length} characters",
        ))
    if field.max_length is not None and len(value) > field.max_length:
        issues.append(ValidationIssue(
            field.name, 'maxLength',
            f"Length of '{field.name}' must be at most {field.max_length} characters",
        ))
    if field.pattern and re.search(field.pattern, value) is None:
        issues.append(ValidationIssue(
            field.name, 'pattern',
            f"Value for '{field.name}' must match pattern: {field.pattern}",
        ))


def _check_unique(
    field: ResourceField,
    value: Any,
    record: Record,
    collection: str,
    existing_records: Sequence[Record],
    is_update: bool,
    primary_key: str,
    issues: List[ValidationIssue]
) -> None:
    if not existing_records:
        return

    record_id = record.get(primary_key)
    for existing in existing_records:
        # 更新时跳过记录自身
        if is_update and strict_equals(existing.get(primary_key), record_id):
            continue
        if strict_equals(existing.get(field.name), value):
            issues.append(ValidationIssue(
                field.name, 'unique',
                f"Value for '{field.name}' must be unique across all {collection} records",
            ))
            return


def validate_record(
    record: Record,
    fields: Sequence[ResourceField],
    collection: str,
    existing_records: Optional[Sequence[Record]] = None,
    is_update: bool = False,
    primary_key: str = 'id',
    options: Optional[ValidatorOptions] = None
) -> Result[bool, List[ValidationIssue]]:
    """
    校验记录

    Args:
        record: 候选记录
        fields: 字段声明
        collection: 集合名（用于错误消息）
        existing_records: 集合中已有的记录（唯一性校验用）
        is_update: 是否为更新；更新时不检查必填，唯一性校验排除同主键记录
        primary_key: 主键字段名
        options: 校验选项

    Returns:
        Ok(True) 或 Err(全部违规项列表)
    """
    options = options or ValidatorOptions()
    existing = existing_records or []
    issues: List[ValidationIssue] = []

    for field in fields:
        value = record.get(field.name)
        has_value = value is not None

        if not is_update and field.required and not has_value:
            issues.append(ValidationIssue(
                field.name, 'required', f"Field '{field.name}' is required",
            ))
            continue

        if not has_value:
            continue

        _check_enum(field, value, issues)
        _check_number(field, value, issues)
        _check_string(field, value, issues)

        if field.unique and options.check_unique:
            _check_unique(field, value, record, collection, existing, is_update, primary_key, issues)

    if issues:
        return Err(issues)
    return Ok(True)


def format_validation_errors(issues: Sequence[ValidationIssue]) -> str:
    """把违规项拼接为一条可读消息"""
    return '; '.join(issue.message for issue in issues)
