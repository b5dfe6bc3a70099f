"""
fauxapi 配置选项 dataclass 定义

该模块定义了 Store、校验器和各后端的配置选项，替代零散的 **kwargs 参数。
"""
from dataclasses import dataclass
from typing import Optional, Union, Dict


@dataclass(slots=True)
class StoreOptions:
    """Store 配置选项"""
    default_page_size: int = 10  # 只给出 page 时使用的每页条数
    max_page_size: int = 100  # 请求参数解析时 perPage 的上限
    projection_includes_primary_key: bool = False  # 字段投影时是否保留主键
    max_expand_depth: int = 3  # 关系展开路径的最大层数
    auto_save: bool = True  # 每次成功写操作后自动落盘


@dataclass(slots=True)
class ValidatorOptions:
    """字段校验选项"""
    check_unique: bool = True  # 是否执行跨记录唯一性校验


@dataclass(slots=True)
class JsonBackendOptions:
    """JSON 后端配置选项"""
    indent: Optional[int] = 2  # 缩进空格数
    ensure_ascii: bool = False  # 是否强制 ASCII 编码
    impl: Optional[str] = None  # 指定JSON库名：'orjson', 'ujson', 'json'，None 为标准库


@dataclass(slots=True)
class MemoryBackendOptions:
    """内存后端配置选项"""
    keep_backups: int = 5  # 保留的内存备份数量


# Backend 选项联合类型
BackendOptions = Union[
    JsonBackendOptions,
    MemoryBackendOptions,
]


def get_default_backend_options(engine: str) -> BackendOptions:
    """根据引擎类型返回默认选项"""
    defaults: Dict[str, BackendOptions] = {
        'json': JsonBackendOptions(),
        'memory': MemoryBackendOptions(),
    }
    return defaults.get(engine, JsonBackendOptions())
