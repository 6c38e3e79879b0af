"""Java classes with their fields and methods."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Tuple

from codespy.ir.function import Function
from codespy.ir.type import FunctionType, Type
from codespy.ir.value import Value, ValueKind

if TYPE_CHECKING:
    from codespy.ir.context import Context


class JavaField(Value):
    """A static or instance field of a class."""

    k_kind = ValueKind.JAVA_FIELD

    def __init__(self, parent: JavaClass, name: str, type: Type, is_instance: bool) -> None:
        super().__init__(self.k_kind, type)
        self._parent = parent
        self._name = name
        self._is_instance = is_instance

    @property
    def parent(self) -> JavaClass:
        return self._parent

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_instance(self) -> bool:
        return self._is_instance


class JavaClass:
    """A class, created on first reference and filled in as members are seen."""

    def __init__(self, context: Context, name: str) -> None:
        self._context = context
        self._name = name
        self._fields: Dict[str, JavaField] = {}
        self._methods: Dict[Tuple[str, FunctionType], Function] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> Tuple[JavaField, ...]:
        return tuple(self._fields.values())

    @property
    def methods(self) -> Tuple[Function, ...]:
        return tuple(self._methods.values())

    def ensure_field(self, name: str, type: Type, is_instance: bool) -> JavaField:
        """Return the field called *name*, creating it if it does not exist."""
        field = self._fields.get(name)
        if field is None:
            field = self._fields[name] = JavaField(self, name, type, is_instance)
        return field

    def ensure_method(self, name: str, type: FunctionType) -> Function:
        """Return the method with this name and signature, creating it if needed."""
        key = (name, type)
        method = self._methods.get(key)
        if method is None:
            method = Function(self._context, name, type)
            method.set_name_prefix(self._name)
            self._methods[key] = method
        return method

    def __repr__(self) -> str:
        return f"<JavaClass {self._name}>"