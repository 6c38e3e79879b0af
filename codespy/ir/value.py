"""IR values and the use lists linking them to their users."""

from __future__ import annotations

from enum import IntEnum
from typing import ClassVar, Iterator, List, Optional, Tuple, Type as PyType, TypeVar

from codespy.ir.type import Type


class ValueKind(IntEnum):
    """The kind of a value."""

    ARGUMENT = 0
    BASIC_BLOCK = 1
    CONSTANT_DOUBLE = 2
    CONSTANT_FLOAT = 3
    CONSTANT_INT = 4
    CONSTANT_NULL = 5
    CONSTANT_STRING = 6
    FUNCTION = 7
    INSTRUCTION = 8
    JAVA_FIELD = 9
    LOCAL = 10
    POISON = 11


class Use:
    """An edge from an owning value to the value it uses."""

    __slots__ = ("owner", "_value")

    def __init__(self, owner: Optional[Value] = None) -> None:
        self.owner = owner
        self._value: Optional[Value] = None

    @property
    def value(self) -> Optional[Value]:
        return self._value

    def set(self, value: Optional[Value]) -> None:
        """Point this use at *value*, updating the use lists of both values."""
        if self._value is value:
            return
        if self._value is not None:
            self._value._uses.remove(self)
        self._value = value
        if value is not None:
            value._uses.append(self)


class Value:
    """Base of everything that can be used as an operand."""

    k_kind: ClassVar[ValueKind]

    def __init__(self, kind: ValueKind, type: Optional[Type]) -> None:
        self._kind = kind
        self.type = type
        self._uses: List[Use] = []

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def uses(self) -> Tuple[Use, ...]:
        return tuple(self._uses)

    def users(self) -> Iterator[Optional[Value]]:
        """Yield the owner of each use of this value."""
        for use in tuple(self._uses):
            yield use.owner

    def has_uses(self) -> bool:
        return bool(self._uses)

    def replace_all_uses_with(self, value: Optional[Value]) -> None:
        """Redirect every use of this value to *value*."""
        for use in tuple(self._uses):
            use.set(value)

    def destroy(self) -> None:
        """Detach this value from the use graph in both directions."""
        for use in tuple(self._uses):
            use.set(None)
        self._drop_operands()

    def _drop_operands(self) -> None:
        """Release the uses this value holds on others; values without operands hold none."""


_V = TypeVar("_V", bound=Value)


def value_is(cls: PyType[Value], value: Optional[Value]) -> bool:
    """Return whether *value* is an instance of *cls*."""
    return isinstance(value, cls)


def value_cast(cls: PyType[_V], value: Optional[Value]) -> Optional[_V]:
    """Return *value* if it is an instance of *cls*, otherwise None."""
    return value if isinstance(value, cls) else None