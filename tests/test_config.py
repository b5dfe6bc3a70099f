"""
资源配置测试

测试方法：
- 等价类划分：合法配置、各类非法配置
- 场景设计：YAML / JSON 文件加载

覆盖范围：
- parse_config 字段、关系、初始数据解析
- camelCase 键名转换
- 配置错误抛出 ConfigurationError
- load_config 文件格式
"""

import json

import pytest

from fauxapi import ConfigurationError
from fauxapi.core.config import ApiConfig, Relationship, load_config, parse_config


class TestParseConfig:
    """配置解析测试"""

    def test_blog_config(self, blog_config):
        """解析完整示例配置"""
        users = blog_config.get_resource('users')
        assert users is not None
        assert users.primary_key == 'id'
        assert users.get_field('name').min_length == 2
        assert users.get_field('role').default_value == 'reader'
        assert [r.name for r in users.relationships] == ['posts', 'profile']

    def test_relationship_defaults(self):
        """关系名默认为目标资源名"""
        config = parse_config({'resources': [{
            'name': 'posts',
            'relationships': [{'type': 'belongsTo', 'resource': 'users', 'foreignKey': 'userId'}],
        }]})
        relationship = config.get_resource('posts').relationships[0]
        assert relationship.name == 'users'
        assert relationship.target_key is None

    def test_custom_primary_key(self):
        """自定义主键"""
        config = parse_config({'resources': [{'name': 'books', 'primaryKey': 'isbn'}]})
        assert config.primary_key_for('books') == 'isbn'
        assert config.primary_key_for('unknown') == 'id'

    def test_initial_data_merge(self):
        """顶层 data 覆盖资源的 initialData"""
        config = parse_config({
            'resources': [
                {'name': 'a', 'initialData': [{'id': 1}]},
                {'name': 'b', 'initialData': [{'id': 2}]},
            ],
            'data': {'b': [{'id': 3}], 'c': [{'id': 4}]},
        })
        assert config.initial_data() == {'a': [{'id': 1}], 'b': [{'id': 3}], 'c': [{'id': 4}]}

    def test_alias_match(self):
        """关系可按目标资源名或外键名引用"""
        relationship = Relationship('belongsTo', 'users', 'userId', name='author')
        assert relationship.matches_alias('users')
        assert relationship.matches_alias('userId')
        assert not relationship.matches_alias('author')


class TestInvalidConfig:
    """非法配置测试"""

    @pytest.mark.parametrize('raw', [
        None,
        [],
        {'resources': 'users'},
        {'resources': [{'fields': []}]},
        {'resources': [{'name': 'a', 'fields': [{'type': 'string'}]}]},
        {'resources': [{'name': 'a', 'fields': [{'name': 'x', 'type': 'decimal'}]}]},
        {'resources': [{'name': 'a', 'relationships': [{'type': 'hasMany', 'foreignKey': 'k'}]}]},
        {'resources': [{'name': 'a', 'relationships': [{'type': 'owns', 'resource': 'b', 'foreignKey': 'k'}]}]},
        {'resources': [{'name': 'a', 'relationships': [{'type': 'hasMany', 'resource': 'b'}]}]},
        {'resources': [{'name': 'a'}, {'name': 'a'}]},
        {'resources': [], 'data': {'a': {'id': 1}}},
    ])
    def test_rejected(self, raw):
        """非法配置抛出 ConfigurationError"""
        with pytest.raises(ConfigurationError):
            parse_config(raw)

    @pytest.mark.parametrize('field', [
        {'name': 'code', 'pattern': '['},
        {'name': 'code', 'pattern': 5},
        {'name': 'price', 'type': 'number', 'min': '5'},
        {'name': 'price', 'type': 'number', 'max': True},
        {'name': 'code', 'minLength': -1},
        {'name': 'code', 'maxLength': 2.5},
    ])
    def test_rejected_constraints(self, field):
        """字段约束值无效时在解析阶段报错"""
        with pytest.raises(ConfigurationError, match=field['name']):
            parse_config({'resources': [{'name': 'items', 'fields': [field]}]})

    def test_valid_constraints(self):
        """合法的约束值"""
        config = parse_config({'resources': [{'name': 'items', 'fields': [
            {'name': 'price', 'type': 'number', 'min': 0, 'max': 99.5},
            {'name': 'code', 'minLength': 0, 'maxLength': 8, 'pattern': '^[A-Z]+$'},
        ]}]})
        code = config.get_resource('items').get_field('code')
        assert code.pattern == '^[A-Z]+$'
        assert code.max_length == 8

    def test_empty_config(self):
        """空资源列表合法"""
        assert parse_config({}) == ApiConfig()


class TestLoadConfig:
    """配置文件加载测试"""

    def test_load_yaml(self, temp_dir):
        """加载 YAML 配置"""
        path = temp_dir / 'api.yml'
        path.write_text(
            "resources:\n"
            "  - name: users\n"
            "    fields:\n"
            "      - name: email\n"
            "        type: string\n"
            "        unique: true\n",
            encoding='utf-8',
        )
        config = load_config(path)
        assert config.get_resource('users').get_field('email').unique

    def test_load_json(self, temp_dir, blog_config_dict):
        """加载 JSON 配置"""
        path = temp_dir / 'api.json'
        path.write_text(json.dumps(blog_config_dict), encoding='utf-8')
        assert len(load_config(str(path)).resources) == 6

    def test_unsupported_extension(self, temp_dir):
        """不支持的扩展名"""
        path = temp_dir / 'api.toml'
        path.write_text('', encoding='utf-8')
        with pytest.raises(ConfigurationError, match='Unsupported file extension'):
            load_config(path)

    def test_missing_file(self, temp_dir):
        """文件不存在"""
        with pytest.raises(ConfigurationError):
            load_config(temp_dir / 'missing.yml')

    def test_invalid_yaml(self, temp_dir):
        """YAML 语法错误"""
        path = temp_dir / 'bad.yaml'
        path.write_text('resources: [unclosed', encoding='utf-8')
        with pytest.raises(ConfigurationError):
            load_config(path)
