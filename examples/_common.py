import tempfile
from pathlib import Path


def get_project_temp_dir() -> Path:
    """示例数据文件所在的临时目录"""
    temp_dir = Path(tempfile.gettempdir()) / 'FauxApi_Temp'
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def fresh_data_file(name: str) -> Path:
    """返回一个不存在的数据文件路径，已存在时先删除"""
    path = get_project_temp_dir() / name
    if path.exists():
        path.unlink()
    return path
