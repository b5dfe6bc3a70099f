"""
fauxapi 结果类型

核心操作返回 Ok(value) 或 Err(error)，而不是抛出异常：

    result = store.get_record('users', 1)
    if result.ok:
        print(result.value)
    else:
        print(result.error.to_dict())
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Generic, TypeVar, Union

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')
F = TypeVar('F')


@dataclass(frozen=True)
class Ok(Generic[T]):
    """成功结果"""
    value: T
    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """失败结果，error 通常是 FauxApiException 实例"""
    error: E
    ok: ClassVar[bool] = False

    def unwrap(self) -> Any:
        """失败结果展开时抛出其载荷"""
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap() on Err: {self.error!r}")


Result = Union[Ok[T], Err[E]]


def map_result(result: 'Result[T, E]', fn: Callable[[T], U]) -> 'Result[U, E]':
    """对成功值做变换，失败结果原样返回"""
    if result.ok:
        return Ok(fn(result.value))
    return result


def flat_map_result(result: 'Result[T, E]', fn: Callable[[T], 'Result[U, E]']) -> 'Result[U, E]':
    """链接返回 Result 的操作"""
    if result.ok:
        return fn(result.value)
    return result


def map_error(result: 'Result[T, E]', fn: Callable[[E], F]) -> 'Result[T, F]':
    """对失败载荷做变换"""
    if result.ok:
        return result
    return Err(fn(result.error))


def get_or_else(result: 'Result[T, E]', default: T) -> T:
    """取成功值，失败时返回默认值"""
    return result.value if result.ok else default
