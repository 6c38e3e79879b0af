"""Ownership and interning of types and constants."""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from codespy.ir.constant import (
    ConstantDouble,
    ConstantFloat,
    ConstantInt,
    ConstantNull,
    ConstantString,
    PoisonValue,
)
from codespy.ir.type import ArrayType, FunctionType, IntType, ReferenceType, Type, TypeKind


class Context:
    """Hands out unique type and constant objects, so they compare by identity."""

    def __init__(self) -> None:
        self._any_type = Type(TypeKind.ANY)
        self._label_type = Type(TypeKind.LABEL)
        self._float_type = Type(TypeKind.FLOAT)
        self._double_type = Type(TypeKind.DOUBLE)
        self._void_type = Type(TypeKind.VOID)
        self._array_types: Dict[Type, ArrayType] = {}
        self._int_types: Dict[int, IntType] = {}
        self._reference_types: Dict[str, ReferenceType] = {}
        self._function_types: Dict[Tuple[Type, Tuple[Type, ...]], FunctionType] = {}

        self._constant_null = ConstantNull(self._any_type)
        self._double_constants: Dict[float, ConstantDouble] = {}
        self._float_constants: Dict[float, ConstantFloat] = {}
        self._int_constants: Dict[Tuple[int, int], ConstantInt] = {}
        self._string_constants: Dict[str, ConstantString] = {}
        self._poison_values: Dict[Type, PoisonValue] = {}

    @property
    def any_type(self) -> Type:
        return self._any_type

    @property
    def label_type(self) -> Type:
        return self._label_type

    @property
    def float_type(self) -> Type:
        return self._float_type

    @property
    def double_type(self) -> Type:
        return self._double_type

    @property
    def void_type(self) -> Type:
        return self._void_type

    @property
    def constant_null(self) -> ConstantNull:
        return self._constant_null

    def array_type(self, element_type: Type) -> ArrayType:
        array = self._array_types.get(element_type)
        if array is None:
            array = self._array_types[element_type] = ArrayType(element_type)
        return array

    def function_type(self, return_type: Type, parameter_types: Iterable[Type]) -> FunctionType:
        key = (return_type, tuple(parameter_types))
        function = self._function_types.get(key)
        if function is None:
            function = self._function_types[key] = FunctionType(return_type, key[1])
        return function

    def int_type(self, bit_width: int) -> IntType:
        int_type = self._int_types.get(bit_width)
        if int_type is None:
            int_type = self._int_types[bit_width] = IntType(bit_width)
        return int_type

    def reference_type(self, class_name: str) -> ReferenceType:
        reference = self._reference_types.get(class_name)
        if reference is None:
            reference = self._reference_types[class_name] = ReferenceType(class_name)
        return reference

    def constant_double(self, value: float) -> ConstantDouble:
        key = float(value)
        constant = self._double_constants.get(key)
        if constant is None:
            constant = self._double_constants[key] = ConstantDouble(self._double_type, key)
        return constant

    def constant_float(self, value: float) -> ConstantFloat:
        constant = self._float_constants.get(value)
        if constant is None:
            constant = self._float_constants[value] = ConstantFloat(self._float_type, value)
        return constant

    def constant_int(self, type: IntType, value: int) -> ConstantInt:
        key = (int(value), type.bit_width)
        constant = self._int_constants.get(key)
        if constant is None:
            constant = self._int_constants[key] = ConstantInt(type, key[0])
        return constant

    def constant_string(self, value: str) -> ConstantString:
        constant = self._string_constants.get(value)
        if constant is None:
            string_type = self.reference_type("java/lang/String")
            constant = self._string_constants[value] = ConstantString(string_type, value)
        return constant

    def poison_value(self, type: Type) -> PoisonValue:
        poison = self._poison_values.get(type)
        if poison is None:
            poison = self._poison_values[type] = PoisonValue(type)
        return poison