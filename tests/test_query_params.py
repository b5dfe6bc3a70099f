"""
请求参数解析测试

测试方法：
- 等价类划分：保留参数、方括号过滤、普通等值过滤
- 边界值分析：page / perPage 的上下限

覆盖范围：
- page / perPage 规范化
- sortBy / fields / expand 解析
- 方括号操作符、i: 前缀、in/nin 列表
- 数值字符串转换
"""

import pytest

from fauxapi.query import QueryFilter, QuerySort, parse_query_options
from fauxapi.query.params import coerce_scalar


class TestPagingParams:
    """分页参数测试"""

    def test_page_and_per_page(self):
        """正常的 page / perPage"""
        options = parse_query_options({'page': '2', 'perPage': '20'})
        assert options.page == 2
        assert options.per_page == 20

    def test_per_page_clamped(self):
        """perPage 限制在 [1, max]"""
        assert parse_query_options({'perPage': '500'}, max_per_page=100).per_page == 100
        assert parse_query_options({'perPage': '0'}).per_page == 1

    def test_page_clamped(self):
        """page 最小为 1"""
        assert parse_query_options({'page': '-3'}).page == 1

    def test_page_only_uses_default_per_page(self):
        """只给 page 时使用默认每页条数"""
        assert parse_query_options({'page': '1'}, default_per_page=15).per_page == 15

    def test_invalid_numbers_ignored(self):
        """非数字的 page 被忽略"""
        options = parse_query_options({'page': 'abc'})
        assert options.page is None
        assert not options.paginated


class TestListParams:
    """排序、投影、展开参数测试"""

    def test_sort_by(self):
        """sortBy 多字段"""
        options = parse_query_options({'sortBy': 'name.asc,price.desc,age'})
        assert options.sort == [QuerySort('name', 'asc'), QuerySort('price', 'desc'), QuerySort('age', 'asc')]

    def test_fields_and_expand(self):
        """fields / expand 逗号分隔"""
        options = parse_query_options({'fields': 'id, name', 'expand': ['author', 'comments.author']})
        assert options.fields == ['id', 'name']
        assert options.expand == ['author', 'comments.author']


class TestFilterParams:
    """过滤参数测试"""

    def test_bracket_operator(self):
        """price[gte]=100 转为数值比较"""
        options = parse_query_options({'price[gte]': '100'})
        assert options.filters == [QueryFilter('price', 'gte', 100)]

    def test_case_insensitive_prefix(self):
        """i: 前缀表示大小写不敏感"""
        options = parse_query_options({'i:name[eq]': 'Ann'})
        assert options.filters == [QueryFilter('name', 'eq', 'Ann', case_sensitive=False)]

    def test_in_list(self):
        """in 的值按逗号拆分并去除空白"""
        options = parse_query_options({'tags[in]': 'a, b,3'})
        assert options.filters == [QueryFilter('tags', 'in', ['a', 'b', 3])]

    def test_plain_equality(self):
        """普通参数作为等值过滤"""
        options = parse_query_options({'status': 'published', 'page': '1'})
        assert options.filters == [QueryFilter('status', 'eq', 'published')]

    def test_unknown_operator_ignored(self):
        """未知操作符被忽略"""
        assert parse_query_options({'name[like]': 'x'}).filters == []


class TestCoercion:
    """数值转换测试"""

    def test_coerce(self):
        """整数、浮点数、字符串"""
        assert coerce_scalar('42') == 42
        assert coerce_scalar('2.5') == 2.5
        assert coerce_scalar('abc') == 'abc'
        assert coerce_scalar('-7') == -7

    @pytest.mark.parametrize('text', ['1_000', 'nan', 'inf', '-Infinity', '1e3', '.5', '5.'])
    def test_non_decimal_kept_as_string(self, text):
        """只有普通十进制数字才转换"""
        assert coerce_scalar(text) == text

    def test_bracket_filter_keeps_non_decimal(self):
        """括号过滤值 1_000 保持字符串"""
        options = parse_query_options({'code[eq]': '1_000'})
        assert options.filters[0].value == '1_000'
