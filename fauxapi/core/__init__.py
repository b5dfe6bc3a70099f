"""
fauxapi 核心模块

包含资源配置、存储、校验、关系解析、记录写操作和数据库门面
"""

from .config import (
    ResourceField,
    Relationship,
    Resource,
    ApiConfig,
    parse_config,
    load_config,
)
from .keys import generate_id, is_uuid_primary_key
from .validation import ValidationIssue, validate_record, format_validation_errors
from .special_fields import apply_special_fields, apply_special_fields_for_update, hash_sensitive_fields
from .store import Store
from .relations import (
    get_primary_key,
    get_relationships,
    find_relationship,
    expand_single_level,
    expand_nested,
    expand_relationships,
    find_related_records,
)
from .mutator import RecordMutator
from .database import Database, ResourceOperations

__all__ = [
    # Config
    'ResourceField',
    'Relationship',
    'Resource',
    'ApiConfig',
    'parse_config',
    'load_config',
    # Keys & Validation
    'generate_id',
    'is_uuid_primary_key',
    'ValidationIssue',
    'validate_record',
    'format_validation_errors',
    'apply_special_fields',
    'apply_special_fields_for_update',
    'hash_sensitive_fields',
    # Store & Relations
    'Store',
    'get_primary_key',
    'get_relationships',
    'find_relationship',
    'expand_single_level',
    'expand_nested',
    'expand_relationships',
    'find_related_records',
    # Mutations & Facade
    'RecordMutator',
    'Database',
    'ResourceOperations',
]
