"""
fauxapi - mock REST API 的数据核心

根据声明式的资源配置（字段、关系、校验规则）提供集合级 CRUD、
查询（过滤/排序/分页/投影）、关系展开和 JSON 持久化。

    from fauxapi import Database, QueryOptions, QueryFilter

    db = Database('api.yml', file_path='db.json')
    posts = db.resource('posts').unwrap()
    result = posts.find_all(QueryOptions(
        filters=[QueryFilter('status', 'eq', 'published')],
        expand=['author'],
    ))
"""

import logging

from .common.result import Ok, Err, Result
from .common.exceptions import (
    FauxApiException,
    ConfigurationError,
    SerializationError,
    ResourceNotFoundError,
    RecordNotFoundError,
    DuplicateKeyError,
    RelationshipNotFoundError,
    MissingThroughCollectionError,
    UnsupportedRelationshipTypeError,
    ExpansionDepthError,
    ValidationFailedError,
)
from .common.options import (
    StoreOptions,
    ValidatorOptions,
    JsonBackendOptions,
    MemoryBackendOptions,
)
from .query import QueryFilter, QuerySort, QueryOptions, parse_query_options
from .core import (
    ApiConfig,
    Resource,
    ResourceField,
    Relationship,
    parse_config,
    load_config,
    Store,
    RecordMutator,
    Database,
    ResourceOperations,
)

__version__ = '0.1.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Result
    'Ok',
    'Err',
    'Result',
    # Exceptions
    'FauxApiException',
    'ConfigurationError',
    'SerializationError',
    'ResourceNotFoundError',
    'RecordNotFoundError',
    'DuplicateKeyError',
    'RelationshipNotFoundError',
    'MissingThroughCollectionError',
    'UnsupportedRelationshipTypeError',
    'ExpansionDepthError',
    'ValidationFailedError',
    # Options
    'StoreOptions',
    'ValidatorOptions',
    'JsonBackendOptions',
    'MemoryBackendOptions',
    # Query
    'QueryFilter',
    'QuerySort',
    'QueryOptions',
    'parse_query_options',
    # Core
    'ApiConfig',
    'Resource',
    'ResourceField',
    'Relationship',
    'parse_config',
    'load_config',
    'Store',
    'RecordMutator',
    'Database',
    'ResourceOperations',
]
