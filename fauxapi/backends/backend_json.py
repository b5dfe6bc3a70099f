"""
fauxapi JSON 存储引擎

单个 JSON 文档保存全部集合：{"集合名": [记录, ...], ...}。
写入使用临时文件 + 替换保证原子性，可选 orjson / ujson 作为 JSON 实现。
"""

import importlib
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .base import Collections, StorageBackend
from ..common.exceptions import ConfigurationError, SerializationError
from ..common.options import JsonBackendOptions

logger = logging.getLogger(__name__)

SUPPORTED_IMPLS = ('json', 'orjson', 'ujson')


class JSONBackend(StorageBackend):
    """JSON format storage engine"""

    ENGINE_NAME = 'json'
    REQUIRED_DEPENDENCIES = []  # 标准库

    def __init__(self, file_path: Union[str, Path], options: JsonBackendOptions):
        """
        初始化 JSON 后端

        Args:
            file_path: JSON 文件路径
            options: JSON 后端配置选项

        Raises:
            ConfigurationError: 指定的 JSON 库不受支持或未安装
        """
        assert isinstance(options, JsonBackendOptions), "options must be an instance of JsonBackendOptions"
        if not file_path:
            raise ConfigurationError("JSON backend requires a file path")
        super().__init__(file_path, options)
        self.options: JsonBackendOptions = options
        self.file_path: Path = Path(file_path).expanduser()
        self._impl_name = options.impl or 'json'
        self._dumps, self._loads = self._select_impl(self._impl_name)

    def _select_impl(self, impl: str) -> Tuple[Callable[[Any], str], Callable[[Any], Any]]:
        """根据配置选择 JSON 序列化函数"""
        if impl not in SUPPORTED_IMPLS:
            raise ConfigurationError(
                f"Unsupported JSON implementation: '{impl}'. "
                f"Supported: {', '.join(SUPPORTED_IMPLS)}"
            )

        if impl == 'json':
            def dumps(data: Any) -> str:
                return json.dumps(data, indent=self.options.indent, ensure_ascii=self.options.ensure_ascii)
            return dumps, json.loads

        try:
            module = importlib.import_module(impl)
        except ImportError:
            raise ConfigurationError(
                f"JSON implementation '{impl}' is not installed. Install it with: pip install fauxapi[{impl}]"
            )

        if impl == 'orjson':
            # orjson 只支持两空格缩进，indent 为其他值时同样按两空格输出
            option = module.OPT_INDENT_2 if self.options.indent else 0

            def orjson_dumps(data: Any) -> str:
                return module.dumps(data, option=option).decode('utf-8')
            return orjson_dumps, module.loads

        def ujson_dumps(data: Any) -> str:
            return module.dumps(data, indent=self.options.indent or 0, ensure_ascii=self.options.ensure_ascii)
        return ujson_dumps, module.loads

    def save(self, data: Collections) -> None:
        """保存全部集合到 JSON 文件"""
        # 使用临时文件保证原子性
        temp_path = self.file_path.parent / (self.file_path.name + '.tmp')

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            content = self._dumps(data)
            temp_path.write_text(content, encoding='utf-8')
            temp_path.replace(self.file_path)
        except Exception as e:
            # 清理临时文件
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except FileNotFoundError:
                    pass
            raise SerializationError(f"Failed to save JSON file: {e}", path=str(self.file_path))

        logger.debug("Saved %d collection(s) to %s", len(data), self.file_path)

    def _read(self, path: Path) -> Collections:
        try:
            content = path.read_text(encoding='utf-8')
            data = self._loads(content) if content.strip() else {}
        except (OSError, ValueError) as e:
            raise SerializationError(f"Failed to load JSON file: {e}", path=str(path))

        if not isinstance(data, dict):
            raise SerializationError(
                "JSON database must be an object mapping collection names to lists",
                path=str(path),
            )
        for name, records in data.items():
            if not isinstance(records, list):
                raise SerializationError(f"Collection '{name}' must be a list", path=str(path))
        return data

    def load(self) -> Collections:
        """从 JSON 文件加载全部集合"""
        if not self.exists():
            raise SerializationError(f"JSON file not found: {self.file_path}", path=str(self.file_path))
        data = self._read(self.file_path)
        logger.info("Loaded %d collection(s) from %s", len(data), self.file_path)
        return data

    def exists(self) -> bool:
        return self.file_path.exists()

    def delete(self) -> None:
        if self.file_path.exists():
            self.file_path.unlink()

    def backup(self, target: Optional[Union[str, Path]] = None) -> str:
        """复制数据文件，默认备份到 <文件名>.<时间戳>.backup"""
        if not self.exists():
            raise SerializationError(
                f"Cannot backup: source file does not exist at {self.file_path}",
                path=str(self.file_path),
            )

        if target is None:
            timestamp = datetime.now(timezone.utc).isoformat().replace(':', '-').replace('.', '-')
            target_path = self.file_path.parent / f"{self.file_path.name}.{timestamp}.backup"
        else:
            target_path = Path(target).expanduser()

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.file_path, target_path)
        except OSError as e:
            raise SerializationError(f"Failed to create backup: {e}", path=str(target_path))

        logger.info("Backed up %s to %s", self.file_path, target_path)
        return str(target_path)

    def restore(self, source: Union[str, Path]) -> Collections:
        """用备份文件覆盖数据文件并重新加载"""
        source_path = Path(source).expanduser()
        if not source_path.exists():
            raise SerializationError(
                f"Cannot restore: backup file does not exist at {source_path}",
                path=str(source_path),
            )

        # 备份内容校验通过后才覆盖数据文件
        data = self._read(source_path)
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, self.file_path)
        except OSError as e:
            raise SerializationError(f"Failed to restore from backup: {e}", path=str(source_path))

        logger.info("Restored %s from %s", self.file_path, source_path)
        return data

    def get_metadata(self) -> Dict[str, Any]:
        metadata = super().get_metadata()
        metadata['impl'] = self._impl_name
        if self.exists():
            metadata['file_size'] = self.file_path.stat().st_size
        return metadata
