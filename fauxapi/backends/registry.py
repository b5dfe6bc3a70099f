"""
fauxapi 后端注册表

按引擎名实例化存储后端
"""

from pathlib import Path
from typing import Dict, List, Optional, Type, Union

from .base import StorageBackend
from .backend_json import JSONBackend
from .backend_memory import MemoryBackend
from ..common.exceptions import ConfigurationError
from ..common.options import BackendOptions, get_default_backend_options


class BackendRegistry:
    """引擎名到后端类的映射"""

    _backends: Dict[str, Type[StorageBackend]] = {}

    @classmethod
    def register(cls, backend_class: Type[StorageBackend]) -> Type[StorageBackend]:
        if not backend_class.ENGINE_NAME:
            raise ConfigurationError(f"{backend_class.__name__} must define ENGINE_NAME")
        cls._backends[backend_class.ENGINE_NAME] = backend_class
        return backend_class

    @classmethod
    def get(cls, engine: str) -> Type[StorageBackend]:
        if engine not in cls._backends:
            raise ConfigurationError(
                f"Unknown storage engine: '{engine}'. Available: {', '.join(sorted(cls._backends))}"
            )
        return cls._backends[engine]

    @classmethod
    def engines(cls) -> List[str]:
        return sorted(cls._backends)


BackendRegistry.register(JSONBackend)
BackendRegistry.register(MemoryBackend)


def get_backend(
    engine: str,
    file_path: Optional[Union[str, Path]] = None,
    options: Optional[BackendOptions] = None
) -> StorageBackend:
    """
    创建后端实例

    Args:
        engine: 引擎名（'json'、'memory'）
        file_path: 数据文件路径
        options: 后端选项，None 时使用该引擎的默认选项

    Returns:
        后端实例

    Raises:
        ConfigurationError: 引擎未知或依赖缺失
    """
    backend_class = BackendRegistry.get(engine)
    if not backend_class.is_available():
        raise ConfigurationError(
            f"Storage engine '{engine}' requires: {', '.join(backend_class.REQUIRED_DEPENDENCIES)}"
        )
    if options is None:
        options = get_default_backend_options(engine)
    return backend_class(file_path, options)


def get_available_engines() -> Dict[str, bool]:
    """引擎名到“依赖是否可用”的映射"""
    return {name: BackendRegistry.get(name).is_available() for name in BackendRegistry.engines()}
