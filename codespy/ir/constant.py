"""Constant IR values."""

from __future__ import annotations

from typing import Optional

from codespy.ir.type import Type
from codespy.ir.value import Value, ValueKind


class ConstantDouble(Value):
    """A 64-bit floating point constant."""

    k_kind = ValueKind.CONSTANT_DOUBLE

    def __init__(self, type: Type, value: float) -> None:
        super().__init__(self.k_kind, type)
        self._value = float(value)

    @property
    def value(self) -> float:
        return self._value


class ConstantFloat(Value):
    """A 32-bit floating point constant."""

    k_kind = ValueKind.CONSTANT_FLOAT

    def __init__(self, type: Type, value: float) -> None:
        super().__init__(self.k_kind, type)
        self._value = value

    @property
    def value(self) -> float:
        return self._value


class ConstantInt(Value):
    """An integer constant of the width given by its type."""

    k_kind = ValueKind.CONSTANT_INT

    def __init__(self, type: Type, value: int) -> None:
        super().__init__(self.k_kind, type)
        self._value = int(value)

    @property
    def value(self) -> int:
        return self._value


class ConstantString(Value):
    """A string constant."""

    k_kind = ValueKind.CONSTANT_STRING

    def __init__(self, type: Type, value: str) -> None:
        super().__init__(self.k_kind, type)
        self._value = value

    @property
    def value(self) -> str:
        return self._value


class ConstantNull(Value):
    """The null reference."""

    k_kind = ValueKind.CONSTANT_NULL

    def __init__(self, type: Optional[Type]) -> None:
        super().__init__(self.k_kind, type)


class PoisonValue(Value):
    """A placeholder for a value that is undefined."""

    k_kind = ValueKind.POISON

    def __init__(self, type: Type) -> None:
        super().__init__(self.k_kind, type)