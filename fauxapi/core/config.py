"""
fauxapi 资源配置

资源声明（字段、关系、校验规则）的数据结构、解析与校验。
配置文件使用 camelCase 键名（primaryKey、foreignKey、minLength 等），
加载后转换为 snake_case 属性的 dataclass。
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

FIELD_TYPES = ('string', 'number', 'boolean', 'array', 'object', 'date', 'uuid')
RELATIONSHIP_TYPES = ('hasOne', 'hasMany', 'belongsTo', 'manyToMany')
DEFAULT_PRIMARY_KEY = 'id'


@dataclass
class ResourceField:
    """字段声明"""
    name: str
    type: str = 'string'
    required: bool = False
    enum: Optional[List[Any]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    unique: bool = False
    default_value: Any = None
    description: Optional[str] = None

    @property
    def has_default(self) -> bool:
        return self.default_value is not None


@dataclass
class Relationship:
    """
    关系声明

    Attributes:
        type: hasOne / hasMany / belongsTo / manyToMany
        resource: 目标集合名
        foreign_key: 外键字段名（hasOne/hasMany 在目标记录上，belongsTo 在源记录上，
            manyToMany 在中间集合记录上指向源记录）
        name: 关系名，默认与 resource 相同
        target_key: belongsTo 中被引用的目标字段；manyToMany 中间集合里指向目标记录的字段
        through: manyToMany 的中间集合名
    """
    type: str
    resource: str
    foreign_key: str
    name: Optional[str] = None
    target_key: Optional[str] = None
    through: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.resource

    def matches_alias(self, name: str) -> bool:
        """兼容按目标资源名或外键名引用关系"""
        return name in (self.resource, self.foreign_key)


@dataclass
class Resource:
    """资源声明"""
    name: str
    fields: List[ResourceField] = field(default_factory=list)
    primary_key: str = DEFAULT_PRIMARY_KEY
    relationships: List[Relationship] = field(default_factory=list)
    initial_data: List[Record] = field(default_factory=list)

    def get_field(self, name: str) -> Optional[ResourceField]:
        for resource_field in self.fields:
            if resource_field.name == name:
                return resource_field
        return None


@dataclass
class ApiConfig:
    """完整的 API 配置"""
    resources: List[Resource] = field(default_factory=list)
    data: Dict[str, List[Record]] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    def get_resource(self, name: str) -> Optional[Resource]:
        for resource in self.resources:
            if resource.name == name:
                return resource
        return None

    def primary_key_for(self, name: str) -> str:
        resource = self.get_resource(name)
        return resource.primary_key if resource else DEFAULT_PRIMARY_KEY

    def initial_data(self) -> Dict[str, List[Record]]:
        """合并各资源的 initialData 和顶层 data（顶层 data 优先）"""
        merged: Dict[str, List[Record]] = {}
        for resource in self.resources:
            merged[resource.name] = list(resource.initial_data)
        for collection, records in self.data.items():
            merged[collection] = list(records)
        return merged


def _parse_field(raw: Mapping[str, Any], resource_name: str) -> ResourceField:
    name = raw.get('name')
    if not name or not isinstance(name, str):
        raise ConfigurationError(f"Field in resource '{resource_name}' must have a valid name string")

    field_type = raw.get('type', 'string')
    if field_type not in FIELD_TYPES:
        raise ConfigurationError(
            f"Field '{name}' in resource '{resource_name}' has invalid type: {field_type}"
        )

    enum = raw.get('enum')
    if enum is not None and not isinstance(enum, list):
        raise ConfigurationError(f"Field '{name}' in resource '{resource_name}': enum must be a list")

    for key in ('min', 'max'):
        bound = raw.get(key)
        if bound is not None and (isinstance(bound, bool) or not isinstance(bound, (int, float))):
            raise ConfigurationError(
                f"Field '{name}' in resource '{resource_name}': {key} must be a number"
            )

    for key in ('minLength', 'maxLength'):
        length = raw.get(key)
        if length is not None and (isinstance(length, bool) or not isinstance(length, int) or length < 0):
            raise ConfigurationError(
                f"Field '{name}' in resource '{resource_name}': {key} must be a non-negative integer"
            )

    pattern = raw.get('pattern')
    if pattern is not None:
        if not isinstance(pattern, str):
            raise ConfigurationError(f"Field '{name}' in resource '{resource_name}': pattern must be a string")
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Field '{name}' in resource '{resource_name}' has invalid pattern: {e}"
            )

    return ResourceField(
        name=name,
        type=field_type,
        required=bool(raw.get('required', False)),
        enum=enum,
        min=raw.get('min'),
        max=raw.get('max'),
        min_length=raw.get('minLength'),
        max_length=raw.get('maxLength'),
        pattern=pattern,
        unique=bool(raw.get('unique', False)),
        default_value=raw.get('defaultValue'),
        description=raw.get('description'),
    )


def _parse_relationship(raw: Mapping[str, Any], resource_name: str) -> Relationship:
    target = raw.get('resource')
    if not target or not isinstance(target, str):
        raise ConfigurationError(
            f"Relationship in resource '{resource_name}' must specify a target resource"
        )

    rel_type = raw.get('type')
    if rel_type not in RELATIONSHIP_TYPES:
        raise ConfigurationError(
            f"Relationship in resource '{resource_name}' has invalid type: {rel_type}"
        )

    foreign_key = raw.get('foreignKey')
    if not foreign_key or not isinstance(foreign_key, str):
        raise ConfigurationError(
            f"Relationship in resource '{resource_name}' must specify a foreignKey"
        )

    return Relationship(
        type=rel_type,
        resource=target,
        foreign_key=foreign_key,
        name=raw.get('name'),
        target_key=raw.get('targetKey'),
        through=raw.get('through'),
    )


def _parse_resource(raw: Any) -> Resource:
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Resource definition must be a mapping")

    name = raw.get('name')
    if not name or not isinstance(name, str):
        raise ConfigurationError("Resource must have a valid name string")

    initial_data = raw.get('initialData') or []
    if not isinstance(initial_data, list):
        raise ConfigurationError(f"initialData of resource '{name}' must be a list")

    return Resource(
        name=name,
        fields=[_parse_field(item, name) for item in raw.get('fields') or []],
        primary_key=raw.get('primaryKey') or DEFAULT_PRIMARY_KEY,
        relationships=[_parse_relationship(item, name) for item in raw.get('relationships') or []],
        initial_data=initial_data,
    )


def parse_config(raw: Any) -> ApiConfig:
    """
    从字典解析配置

    Args:
        raw: YAML/JSON 解析后的对象

    Returns:
        ApiConfig

    Raises:
        ConfigurationError: 配置结构无效
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Configuration must be a non-null object")

    resources_raw = raw.get('resources') or []
    if not isinstance(resources_raw, list):
        raise ConfigurationError("'resources' must be a list")

    resources = [_parse_resource(item) for item in resources_raw]

    seen = set()
    for resource in resources:
        if resource.name in seen:
            raise ConfigurationError(f"Duplicate resource name: '{resource.name}'")
        seen.add(resource.name)

    data = raw.get('data') or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("'data' must map collection names to record lists")
    for collection, records in data.items():
        if not isinstance(records, list):
            raise ConfigurationError(f"Initial data for '{collection}' must be a list")

    options = raw.get('options') or {}
    return ApiConfig(resources=resources, data=dict(data), options=dict(options))


def load_config(file_path: Union[str, Path]) -> ApiConfig:
    """
    从 .yml / .yaml / .json 文件加载配置

    Raises:
        ConfigurationError: 文件格式不支持或内容无效
    """
    path = Path(file_path).expanduser()
    suffix = path.suffix.lower()
    if suffix not in ('.yml', '.yaml', '.json'):
        raise ConfigurationError(
            f"Unsupported file extension: {suffix}. Only .yml, .yaml, and .json are supported."
        )

    try:
        content = path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}")

    try:
        if suffix == '.json':
            raw = json.loads(content)
        else:
            raw = yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse config file {path}: {e}")

    config = parse_config(raw)
    logger.info("Loaded %d resource(s) from %s", len(config.resources), path)
    return config
