"""
Pytest 配置和共享 fixtures

此文件提供 pytest 测试所需的共享配置和 fixtures。
"""
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest

# 确保可以导入 fauxapi
sys.path.insert(0, str(Path(__file__).parent.parent))

from fauxapi import ApiConfig, Store, parse_config


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    提供临时目录 fixture

    使用 TemporaryDirectory 确保测试隔离，
    测试结束后自动清理。

    Yields:
        临时目录的 Path 对象
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_file(temp_dir: Path) -> Generator[Path, None, None]:
    """
    提供临时数据文件路径 fixture

    Yields:
        临时文件的 Path 对象（文件本身不会被创建）
    """
    yield temp_dir / "db.json"


@pytest.fixture
def blog_config_dict() -> Dict[str, Any]:
    """博客示例配置：users / profiles / posts / comments / tags / postTags"""
    return {
        'resources': [
            {
                'name': 'users',
                'fields': [
                    {'name': 'name', 'type': 'string', 'required': True, 'minLength': 2},
                    {'name': 'email', 'type': 'string', 'required': True, 'unique': True,
                     'pattern': r'^[^@]+@[^@]+\.[a-z]+$'},
                    {'name': 'role', 'type': 'string', 'enum': ['admin', 'author', 'reader'],
                     'defaultValue': 'reader'},
                    {'name': 'age', 'type': 'number', 'min': 0, 'max': 150},
                ],
                'relationships': [
                    {'name': 'posts', 'type': 'hasMany', 'resource': 'posts', 'foreignKey': 'userId'},
                    {'name': 'profile', 'type': 'hasOne', 'resource': 'profiles', 'foreignKey': 'userId'},
                ],
            },
            {
                'name': 'profiles',
                'fields': [
                    {'name': 'userId', 'type': 'number', 'required': True},
                    {'name': 'bio', 'type': 'string', 'maxLength': 200},
                ],
            },
            {
                'name': 'posts',
                'fields': [
                    {'name': 'title', 'type': 'string', 'required': True},
                    {'name': 'userId', 'type': 'number', 'required': True},
                    {'name': 'status', 'type': 'string', 'enum': ['draft', 'published'],
                     'defaultValue': 'draft'},
                ],
                'relationships': [
                    {'name': 'author', 'type': 'belongsTo', 'resource': 'users', 'foreignKey': 'userId'},
                    {'name': 'comments', 'type': 'hasMany', 'resource': 'comments', 'foreignKey': 'postId'},
                    {'name': 'tags', 'type': 'manyToMany', 'resource': 'tags', 'foreignKey': 'postId',
                     'targetKey': 'tagId', 'through': 'postTags'},
                ],
            },
            {
                'name': 'comments',
                'fields': [
                    {'name': 'postId', 'type': 'number', 'required': True},
                    {'name': 'body', 'type': 'string', 'required': True},
                ],
                'relationships': [
                    {'name': 'post', 'type': 'belongsTo', 'resource': 'posts', 'foreignKey': 'postId'},
                ],
            },
            {
                'name': 'tags',
                'fields': [{'name': 'label', 'type': 'string', 'required': True, 'unique': True}],
                'relationships': [
                    {'name': 'posts', 'type': 'manyToMany', 'resource': 'posts', 'foreignKey': 'tagId',
                     'targetKey': 'postId', 'through': 'postTags'},
                ],
            },
            {'name': 'postTags', 'fields': []},
        ],
        'data': {
            'users': [
                {'id': 1, 'name': 'Ann', 'email': 'ann@example.com', 'role': 'admin'},
                {'id': 2, 'name': 'Bob', 'email': 'bob@example.com', 'role': 'author'},
            ],
            'profiles': [{'id': 1, 'userId': 1, 'bio': 'Editor'}],
            'posts': [
                {'id': 10, 'userId': 1, 'title': 'Hi', 'status': 'published'},
                {'id': 11, 'userId': 2, 'title': 'Draft', 'status': 'draft'},
                {'id': 12, 'userId': None, 'title': 'Orphan', 'status': 'draft'},
            ],
            'comments': [
                {'id': 100, 'postId': 10, 'body': 'Nice'},
                {'id': 101, 'postId': 10, 'body': 'Thanks'},
                {'id': 102, 'postId': 11, 'body': 'Soon?'},
            ],
            'tags': [
                {'id': 1, 'label': 'python'},
                {'id': 2, 'label': 'news'},
                {'id': 3, 'label': 'misc'},
            ],
            'postTags': [
                {'id': 1, 'postId': 10, 'tagId': 1},
                {'id': 2, 'postId': 10, 'tagId': 2},
                {'id': 3, 'postId': 11, 'tagId': 2},
            ],
        },
    }


@pytest.fixture
def blog_config(blog_config_dict: Dict[str, Any]) -> ApiConfig:
    return parse_config(blog_config_dict)


@pytest.fixture
def blog_store(blog_config: ApiConfig) -> Store:
    """已加载初始数据的纯内存 Store"""
    store = Store(blog_config)
    store.load().unwrap()
    return store
