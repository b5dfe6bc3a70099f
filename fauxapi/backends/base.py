"""
fauxapi 存储后端抽象基类

后端只负责“整体加载一组集合 / 整体保存一组集合 / 备份 / 恢复”，
集合的内存状态由 Store 持有。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..common.options import BackendOptions

Collections = Dict[str, List[Dict[str, Any]]]


class StorageBackend(ABC):
    """存储后端基类"""

    ENGINE_NAME: str = ''
    REQUIRED_DEPENDENCIES: List[str] = []

    def __init__(self, file_path: Optional[Union[str, Path]], options: BackendOptions):
        """
        初始化后端

        Args:
            file_path: 数据文件路径（内存后端可以为 None）
            options: 后端配置选项
        """
        self.file_path: Optional[Path] = Path(file_path).expanduser() if file_path else None
        self.options = options

    @abstractmethod
    def save(self, data: Collections) -> None:
        """
        保存全部集合

        Raises:
            SerializationError: 写入失败
        """

    @abstractmethod
    def load(self) -> Collections:
        """
        加载全部集合

        Raises:
            SerializationError: 读取或解析失败
        """

    @abstractmethod
    def exists(self) -> bool:
        """持久化数据是否存在"""

    @abstractmethod
    def delete(self) -> None:
        """删除持久化数据"""

    @abstractmethod
    def backup(self, target: Optional[Union[str, Path]] = None) -> str:
        """
        备份当前持久化数据

        Args:
            target: 备份位置，None 时自动生成

        Returns:
            备份位置标识

        Raises:
            SerializationError: 没有可备份的数据或复制失败
        """

    @abstractmethod
    def restore(self, source: Union[str, Path]) -> Collections:
        """
        从备份恢复并返回恢复后的数据

        Raises:
            SerializationError: 备份不存在或无法读取
        """

    def get_metadata(self) -> Dict[str, Any]:
        """后端描述信息"""
        return {
            'engine': self.ENGINE_NAME,
            'file_path': str(self.file_path) if self.file_path else None,
            'exists': self.exists(),
        }

    @classmethod
    def is_available(cls) -> bool:
        """检查后端依赖是否可导入"""
        for dependency in cls.REQUIRED_DEPENDENCIES:
            try:
                __import__(dependency)
            except ImportError:
                return False
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(file_path={self.file_path})"
