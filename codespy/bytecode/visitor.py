"""Visitor interfaces driven by the class-file parser."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence, Tuple

from codespy.bytecode.definitions import (
    AccessFlags,
    BaseType,
    CompareOp,
    CompareRhs,
    Constant,
    InvokeKind,
    MathOp,
    MonitorOp,
    ReferenceOp,
    StackOp,
    TypeOp,
)

if TYPE_CHECKING:
    from codespy.bytecode.code import CodeAttribute


class ClassVisitor(ABC):
    """Receives the structure of a parsed class."""

    @abstractmethod
    def visit(self, this_name: str, super_name: str) -> None:
        """Called once with the class and superclass names."""

    @abstractmethod
    def visit_field(self, name: str, descriptor: str) -> None:
        """Called for each field."""

    @abstractmethod
    def visit_method(self, access_flags: AccessFlags, name: str, descriptor: str) -> None:
        """Called for each method, before its code."""

    @abstractmethod
    def visit_exception_range(self, start_pc: int, end_pc: int, handler_pc: int, type_name: str) -> None:
        """Called for each exception table entry of the current method."""

    @abstractmethod
    def visit_code(self, code: CodeAttribute) -> None:
        """Called with the code attribute of the current method."""


class CodeVisitor:
    """Receives decoded instructions; every callback does nothing by default."""

    def visit_constant(self, constant: Constant) -> None:
        pass

    def visit_load(self, type: BaseType, local_index: int) -> None:
        pass

    def visit_store(self, type: BaseType, local_index: int) -> None:
        pass

    def visit_array_load(self, type: BaseType) -> None:
        pass

    def visit_array_store(self, type: BaseType) -> None:
        pass

    def visit_cast(self, from_type: BaseType, to_type: BaseType) -> None:
        pass

    def visit_compare(self, type: BaseType, greater_on_nan: bool) -> None:
        pass

    def visit_new(self, descriptor: str, dimensions: int = 1) -> None:
        pass

    def visit_get_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        pass

    def visit_put_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        pass

    def visit_invoke(self, kind: InvokeKind, owner: str, name: str, descriptor: str) -> None:
        pass

    def visit_math_op(self, type: BaseType, math_op: MathOp) -> None:
        pass

    def visit_monitor_op(self, monitor_op: MonitorOp) -> None:
        pass

    def visit_reference_op(self, reference_op: ReferenceOp) -> None:
        pass

    def visit_stack_op(self, stack_op: StackOp) -> None:
        pass

    def visit_type_op(self, type_op: TypeOp, descriptor: str) -> None:
        pass

    def visit_iinc(self, local_index: int, increment: int) -> None:
        pass

    def visit_goto(self, offset: int) -> None:
        pass

    def visit_if_compare(self, compare_op: CompareOp, true_offset: int, compare_rhs: CompareRhs) -> None:
        pass

    def visit_table_switch(self, low: int, high: int, default_pc: int, table: Sequence[int]) -> None:
        pass

    def visit_lookup_switch(self, default_pc: int, table: Sequence[Tuple[int, int]]) -> None:
        pass

    def visit_return(self, type: BaseType) -> None:
        pass