"""Types of IR values."""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Tuple


class TypeKind(IntEnum):
    """The kind of a type."""

    # Primitive types
    ANY = 0  # for the Java frontend
    LABEL = 1
    FLOAT = 2
    DOUBLE = 3
    VOID = 4

    # Derived types
    ARRAY = 5
    FUNCTION = 6
    INTEGER = 7
    REFERENCE = 8


class Type:
    """A type; instances are unique within a context and compare by identity."""

    __slots__ = ("_kind",)

    def __init__(self, kind: TypeKind) -> None:
        self._kind = kind

    @property
    def kind(self) -> TypeKind:
        return self._kind

    def __repr__(self) -> str:
        return f"Type({self._kind.name})"


class ArrayType(Type):
    """An array of some element type."""

    __slots__ = ("_element_type",)

    def __init__(self, element_type: Type) -> None:
        super().__init__(TypeKind.ARRAY)
        self._element_type = element_type

    @property
    def element_type(self) -> Type:
        return self._element_type

    def __repr__(self) -> str:
        return f"ArrayType({self._element_type!r})"


class FunctionType(Type):
    """A function signature."""

    __slots__ = ("_return_type", "_parameter_types")

    def __init__(self, return_type: Type, parameter_types: Iterable[Type]) -> None:
        super().__init__(TypeKind.FUNCTION)
        self._return_type = return_type
        self._parameter_types = tuple(parameter_types)

    @property
    def return_type(self) -> Type:
        return self._return_type

    @property
    def parameter_types(self) -> Tuple[Type, ...]:
        return self._parameter_types

    def __repr__(self) -> str:
        return f"FunctionType({self._return_type!r}, {list(self._parameter_types)!r})"


class IntType(Type):
    """An integer of a fixed bit width."""

    __slots__ = ("_bit_width",)

    def __init__(self, bit_width: int) -> None:
        super().__init__(TypeKind.INTEGER)
        self._bit_width = bit_width

    @property
    def bit_width(self) -> int:
        return self._bit_width

    def __repr__(self) -> str:
        return f"IntType({self._bit_width})"


class ReferenceType(Type):
    """A reference to an instance of a named class."""

    __slots__ = ("_class_name",)

    def __init__(self, class_name: str) -> None:
        super().__init__(TypeKind.REFERENCE)
        self._class_name = class_name

    @property
    def class_name(self) -> str:
        return self._class_name

    def __repr__(self) -> str:
        return f"ReferenceType({self._class_name!r})"