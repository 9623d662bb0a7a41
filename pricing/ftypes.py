# Either для расчёта без исключений: Left(ошибка) | Right(результат)

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

L = TypeVar("L")
R = TypeVar("R")
U = TypeVar("U")


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Левая ветвь — ошибка расчёта, правая — готовый результат.
    Частичных значений нет: либо одно, либо другое.
    """

    is_left: bool
    value: Union[L, R]

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return self if self.is_left else Either.right(fn(self.value))  # type: ignore[return-value]

    def fold(self, on_left: Callable[[L], U], on_right: Callable[[R], U]) -> U:
        return on_left(self.value) if self.is_left else on_right(self.value)  # type: ignore[arg-type]

    def get_or_else(self, default: U) -> Union[R, U]:
        return default if self.is_left else self.value  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Left({self.value!r})" if self.is_left else f"Right({self.value!r})"
