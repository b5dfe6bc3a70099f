"""
fauxapi 内存存储引擎

不落盘，保存的是最后一次 save 的深拷贝；备份保存在进程内。
适合测试和临时 mock 服务。
"""

import copy
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Optional, Union

from .base import Collections, StorageBackend
from ..common.exceptions import SerializationError
from ..common.options import MemoryBackendOptions

logger = logging.getLogger(__name__)


class MemoryBackend(StorageBackend):
    """In-memory storage engine"""

    ENGINE_NAME = 'memory'
    REQUIRED_DEPENDENCIES = []

    def __init__(self, file_path: Optional[Union[str, Path]], options: MemoryBackendOptions):
        assert isinstance(options, MemoryBackendOptions), "options must be an instance of MemoryBackendOptions"
        super().__init__(file_path, options)
        self.options: MemoryBackendOptions = options
        self._data: Optional[Collections] = None
        self._backups: 'OrderedDict[str, Collections]' = OrderedDict()
        self._backup_counter = 0

    def save(self, data: Collections) -> None:
        self._data = copy.deepcopy(data)

    def load(self) -> Collections:
        if self._data is None:
            raise SerializationError("Memory backend has no saved data")
        return copy.deepcopy(self._data)

    def exists(self) -> bool:
        return self._data is not None

    def delete(self) -> None:
        self._data = None

    def backup(self, target: Optional[Union[str, Path]] = None) -> str:
        """保存一份快照，超过 keep_backups 时丢弃最旧的快照"""
        if self._data is None:
            raise SerializationError("Cannot backup: memory backend has no saved data")

        self._backup_counter += 1
        name = str(target) if target is not None else f"memory-backup-{self._backup_counter}"
        self._backups[name] = copy.deepcopy(self._data)
        self._backups.move_to_end(name)

        while len(self._backups) > max(self.options.keep_backups, 1):
            dropped, _ = self._backups.popitem(last=False)
            logger.debug("Dropped memory backup %s", dropped)

        return name

    def restore(self, source: Union[str, Path]) -> Collections:
        name = str(source)
        if name not in self._backups:
            raise SerializationError(f"Cannot restore: backup '{name}' does not exist")
        self._data = copy.deepcopy(self._backups[name])
        return copy.deepcopy(self._data)

    @property
    def backups(self) -> Dict[str, int]:
        """备份名到集合数量的映射"""
        return {name: len(data) for name, data in self._backups.items()}
