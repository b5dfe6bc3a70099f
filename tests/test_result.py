"""
结果类型测试

覆盖范围：
- Ok / Err 的 ok 标记与 unwrap
- map_result / flat_map_result / map_error / get_or_else
"""

import pytest

from fauxapi import Err, Ok, RecordNotFoundError
from fauxapi.common.result import flat_map_result, get_or_else, map_error, map_result


class TestOkErr:
    """Ok / Err 基本行为"""

    def test_ok(self):
        """成功结果"""
        result = Ok(3)
        assert result.ok
        assert result.unwrap() == 3

    def test_err_unwrap_raises_payload(self):
        """失败结果展开时抛出载荷异常"""
        result = Err(RecordNotFoundError('users', 9))
        assert not result.ok
        with pytest.raises(RecordNotFoundError):
            result.unwrap()

    def test_err_unwrap_non_exception(self):
        """非异常载荷展开时抛出 ValueError"""
        with pytest.raises(ValueError):
            Err(['issue']).unwrap()

    def test_equality(self):
        """结果按值比较"""
        assert Ok([1]) == Ok([1])
        assert Ok(1) != Err(1)


class TestCombinators:
    """组合函数测试"""

    def test_map_result(self):
        """对成功值变换"""
        assert map_result(Ok(2), lambda v: v * 10) == Ok(20)
        err = Err('x')
        assert map_result(err, lambda v: v * 10) is err

    def test_flat_map_result(self):
        """链接返回 Result 的操作"""
        assert flat_map_result(Ok(2), lambda v: Err(v)) == Err(2)

    def test_map_error(self):
        """对失败载荷变换"""
        assert map_error(Err('x'), str.upper) == Err('X')
        assert map_error(Ok(1), str.upper) == Ok(1)

    def test_get_or_else(self):
        """失败时返回默认值"""
        assert get_or_else(Err('x'), 5) == 5
        assert get_or_else(Ok(1), 5) == 1
