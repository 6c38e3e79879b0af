"""Lowering of bytecode types and descriptors to IR types."""

from __future__ import annotations

from typing import Optional, Tuple

from codespy.bytecode.definitions import BaseType
from codespy.ir.context import Context
from codespy.ir.type import FunctionType, Type

_OBJECT = "java/lang/Object"


def lower_base_type(context: Context, base_type: BaseType) -> Type:
    """Return the IR type for an instruction's operand type."""
    if base_type == BaseType.INT:
        return context.int_type(32)
    if base_type == BaseType.LONG:
        return context.int_type(64)
    if base_type == BaseType.FLOAT:
        return context.float_type
    if base_type == BaseType.DOUBLE:
        return context.double_type
    if base_type == BaseType.REFERENCE:
        return context.reference_type(_OBJECT)
    if base_type == BaseType.BYTE:
        return context.int_type(8)
    if base_type in (BaseType.CHAR, BaseType.SHORT):
        return context.int_type(16)
    if base_type == BaseType.VOID:
        return context.void_type
    raise ValueError(f"unknown base type {base_type!r}")


def parse_type_prefix(context: Context, descriptor: str) -> Tuple[Type, int]:
    """Parse the field type at the start of *descriptor*; return it and its length."""
    if not descriptor:
        raise ValueError("empty type descriptor")
    head = descriptor[0]
    if head == "B":
        return context.int_type(8), 1
    if head in ("C", "S"):
        return context.int_type(16), 1
    if head == "D":
        return context.double_type, 1
    if head == "F":
        return context.float_type, 1
    if head == "I":
        return context.int_type(32), 1
    if head == "J":
        return context.int_type(64), 1
    if head == "V":
        return context.void_type, 1
    if head == "Z":
        return context.int_type(1), 1
    if head == "[":
        element_type, length = parse_type_prefix(context, descriptor[1:])
        return context.array_type(element_type), length + 1
    if head == "L":
        class_name = descriptor[1:].split(";", 1)[0]
        return context.reference_type(class_name), len(class_name) + 2
    raise ValueError(f"invalid type descriptor {descriptor!r}")


def parse_type(context: Context, descriptor: str) -> Type:
    """Parse a field type descriptor such as ``I`` or ``[Ljava/lang/String;``."""
    return parse_type_prefix(context, descriptor)[0]


def parse_function_type(context: Context, descriptor: str, this_type: Optional[Type]) -> FunctionType:
    """Parse a method descriptor; *this_type*, if given, becomes the first parameter."""
    if not descriptor.startswith("("):
        raise ValueError(f"invalid method descriptor {descriptor!r}")
    rest = descriptor[1:]
    parameter_types = [] if this_type is None else [this_type]
    while rest and rest[0] != ")":
        parameter_type, length = parse_type_prefix(context, rest)
        parameter_types.append(parameter_type)
        rest = rest[length:]
    return_type = parse_type(context, rest[1:])
    return context.function_type(return_type, parameter_types)