"""
fauxapi 后端模块

提供引擎注册和实例化功能
"""

from .base import StorageBackend
from .backend_json import JSONBackend
from .backend_memory import MemoryBackend
from .registry import BackendRegistry, get_backend, get_available_engines

__all__ = [
    'StorageBackend',
    'JSONBackend',
    'MemoryBackend',
    'BackendRegistry',
    'get_backend',
    'get_available_engines',
]
