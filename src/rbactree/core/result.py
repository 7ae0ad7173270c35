"""
Ok/Err result values.

``build_tree`` hands malformed hierarchies back as an ``Err`` instead of
raising, so callers decide explicitly whether a broken listing means an
error banner, a retry or an exception (``unwrap``).
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    @property
    def error_or_none(self) -> None:
        return None


@dataclass(frozen=True)
class Err(Generic[E]):
    """A failure. ``unwrap`` re-raises the error when it is an exception."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default):
        return default

    @property
    def error_or_none(self) -> Optional[E]:
        return self.error


Result = Union[Ok[T], Err[E]]


def map_ok(result: Result[T, E], func: Callable[[T], U]) -> Result[U, E]:
    """Transform the value of an Ok, pass an Err through untouched."""
    if isinstance(result, Ok):
        return Ok(func(result.value))
    return result  # type: ignore
