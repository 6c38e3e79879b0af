"""Concrete IR instructions."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from codespy.ir.instruction import Instruction, Opcode
from codespy.ir.type import Type
from codespy.ir.value import Value

if TYPE_CHECKING:
    from codespy.ir.basic_block import BasicBlock
    from codespy.ir.function import Function
    from codespy.ir.java import JavaField


class ArrayLengthInst(Instruction):
    """The length of an array, as a 32-bit integer."""

    k_opcode = Opcode.ARRAY_LENGTH

    def __init__(self, parent: BasicBlock, array_ref: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.int_type(32), 1)
        self.set_operand(0, array_ref)

    @property
    def array_ref(self) -> Optional[Value]:
        return self.operand(0)


class BinaryOp(IntEnum):
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    REM = 4
    SHL = 5
    SHR = 6
    USHR = 7
    AND = 8
    OR = 9
    XOR = 10


class BinaryInst(Instruction):
    """An arithmetic or bitwise operation on two operands."""

    k_opcode = Opcode.BINARY

    def __init__(self, parent: BasicBlock, type: Type, op: BinaryOp, lhs: Value, rhs: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 2)
        self._op = op
        self.set_operand(0, lhs)
        self.set_operand(1, rhs)

    @property
    def op(self) -> BinaryOp:
        return self._op

    @property
    def lhs(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def rhs(self) -> Optional[Value]:
        return self.operand(1)


class BranchInst(Instruction):
    """An unconditional jump, or a two-way branch on a condition."""

    k_opcode = Opcode.BRANCH

    def __init__(
        self,
        parent: BasicBlock,
        true_target: BasicBlock,
        false_target: Optional[BasicBlock] = None,
        condition: Optional[Value] = None,
    ) -> None:
        conditional = false_target is not None
        if conditional != (condition is not None):
            raise ValueError("a conditional branch needs both a false target and a condition")
        super().__init__(self.k_opcode, parent, parent.context.void_type, 3 if conditional else 1)
        self._is_conditional = conditional
        self.set_operand(0, true_target)
        if conditional:
            self.set_operand(1, false_target)
            self.set_operand(2, condition)

    @property
    def is_conditional(self) -> bool:
        return self._is_conditional

    @property
    def target(self) -> Optional[BasicBlock]:
        return self.operand(0)

    @property
    def true_target(self) -> Optional[BasicBlock]:
        return self.operand(0)

    @property
    def false_target(self) -> Optional[BasicBlock]:
        return self.operand(1) if self._is_conditional else None

    @property
    def condition(self) -> Optional[Value]:
        return self.operand(2) if self._is_conditional else None

    def successor(self, index: int) -> BasicBlock:
        if not 0 <= index < self.successor_count():
            raise IndexError(f"successor index {index} out of range")
        return self.operand(index)

    def successor_count(self) -> int:
        return 2 if self._is_conditional else 1

    def is_terminator(self) -> bool:
        return True


class CallInst(Instruction):
    """A call of a function; the result type is the callee's return type."""

    k_opcode = Opcode.CALL

    def __init__(self, parent: BasicBlock, callee: Function, arguments: Iterable[Value]) -> None:
        arguments = list(arguments)
        super().__init__(self.k_opcode, parent, callee.function_type.return_type, len(arguments) + 1)
        self.set_operand(0, callee)
        for index, argument in enumerate(arguments, start=1):
            self.set_operand(index, argument)
        self.is_invoke_special = False

    @property
    def callee(self) -> Optional[Function]:
        return self.operand(0)

    @property
    def arguments(self) -> List[Optional[Value]]:
        return list(self.operands[1:])


class CastInst(Instruction):
    """Conversion of a value to another type."""

    k_opcode = Opcode.CAST

    def __init__(self, parent: BasicBlock, type: Type, value: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 1)
        self.set_operand(0, value)

    @property
    def value(self) -> Optional[Value]:
        return self.operand(0)


class CatchInst(Instruction):
    """The exception object received by a handler block."""

    k_opcode = Opcode.CATCH

    def __init__(self, parent: BasicBlock, type: Type) -> None:
        super().__init__(self.k_opcode, parent, type, 0)


class CompareOp(IntEnum):
    EQUAL = 0
    NOT_EQUAL = 1
    LESS_THAN = 2
    GREATER_THAN = 3
    LESS_EQUAL = 4
    GREATER_EQUAL = 5


class CompareInst(Instruction):
    """A boolean comparison of two values."""

    k_opcode = Opcode.COMPARE

    def __init__(self, parent: BasicBlock, op: CompareOp, lhs: Value, rhs: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.int_type(1), 2)
        self._op = op
        self.set_operand(0, lhs)
        self.set_operand(1, rhs)

    @property
    def op(self) -> CompareOp:
        return self._op

    @property
    def lhs(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def rhs(self) -> Optional[Value]:
        return self.operand(1)


class InstanceOfInst(Instruction):
    """Whether a value is an instance of a type."""

    k_opcode = Opcode.INSTANCE_OF

    def __init__(self, parent: BasicBlock, check_type: Type, value: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.int_type(32), 1)
        self._check_type = check_type
        self.set_operand(0, value)

    @property
    def check_type(self) -> Type:
        return self._check_type

    @property
    def value(self) -> Optional[Value]:
        return self.operand(0)


class JavaCompareInst(Instruction):
    """A three-way comparison yielding -1, 0 or 1."""

    k_opcode = Opcode.JAVA_COMPARE

    def __init__(self, parent: BasicBlock, operand_type: Type, lhs: Value, rhs: Value, greater_on_nan: bool) -> None:
        super().__init__(self.k_opcode, parent, parent.context.int_type(32), 2)
        self._operand_type = operand_type
        self._greater_on_nan = greater_on_nan
        self.set_operand(0, lhs)
        self.set_operand(1, rhs)

    @property
    def greater_on_nan(self) -> bool:
        return self._greater_on_nan

    @property
    def operand_type(self) -> Type:
        return self._operand_type

    @property
    def lhs(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def rhs(self) -> Optional[Value]:
        return self.operand(1)


class LoadInst(Instruction):
    """A load from a local or static field."""

    k_opcode = Opcode.LOAD

    def __init__(self, parent: BasicBlock, type: Type, pointer: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 1)
        self.set_operand(0, pointer)

    @property
    def pointer(self) -> Optional[Value]:
        return self.operand(0)


class LoadArrayInst(Instruction):
    """A load of an array element."""

    k_opcode = Opcode.LOAD_ARRAY

    def __init__(self, parent: BasicBlock, type: Type, array_ref: Value, index: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 2)
        self.set_operand(0, array_ref)
        self.set_operand(1, index)

    @property
    def array_ref(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def index(self) -> Optional[Value]:
        return self.operand(1)


class LoadFieldInst(Instruction):
    """A load of an instance field."""

    k_opcode = Opcode.LOAD_FIELD

    def __init__(self, parent: BasicBlock, type: Type, field: JavaField, object_ref: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 2)
        self.set_operand(0, field)
        self.set_operand(1, object_ref)

    @property
    def field(self) -> Optional[JavaField]:
        return self.operand(0)

    @property
    def object_ref(self) -> Optional[Value]:
        return self.operand(1)


class MonitorOp(IntEnum):
    ENTER = 0
    EXIT = 1


class MonitorInst(Instruction):
    """Entry to or exit from an object's monitor."""

    k_opcode = Opcode.MONITOR

    def __init__(self, parent: BasicBlock, op: MonitorOp, object_ref: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 1)
        self._op = op
        self.set_operand(0, object_ref)

    @property
    def op(self) -> MonitorOp:
        return self._op

    @property
    def object_ref(self) -> Optional[Value]:
        return self.operand(0)


class NegateInst(Instruction):
    """Arithmetic negation."""

    k_opcode = Opcode.NEGATE

    def __init__(self, parent: BasicBlock, type: Type, value: Value) -> None:
        super().__init__(self.k_opcode, parent, type, 1)
        self.set_operand(0, value)

    @property
    def value(self) -> Optional[Value]:
        return self.operand(0)


class NewInst(Instruction):
    """Allocation of an object."""

    k_opcode = Opcode.NEW

    def __init__(self, parent: BasicBlock, type: Type) -> None:
        super().__init__(self.k_opcode, parent, type, 0)


class NewArrayInst(Instruction):
    """Allocation of an array with one count per allocated dimension."""

    k_opcode = Opcode.NEW_ARRAY

    def __init__(self, parent: BasicBlock, type: Type, counts: Iterable[Value]) -> None:
        counts = list(counts)
        super().__init__(self.k_opcode, parent, type, len(counts))
        self._dimensions = len(counts)
        for index, count in enumerate(counts):
            self.set_operand(index, count)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def count(self, index: int) -> Optional[Value]:
        return self.operand(index)


class PhiInst(Instruction):
    """Selects a value depending on the predecessor control came from."""

    k_opcode = Opcode.PHI

    def __init__(self, parent: BasicBlock, incoming_count: int) -> None:
        super().__init__(self.k_opcode, parent, None, incoming_count * 2)
        self._incoming_count = incoming_count

    @property
    def incoming_count(self) -> int:
        return self._incoming_count

    def _check_incoming_index(self, index: int) -> None:
        if not 0 <= index < self._incoming_count:
            raise IndexError(f"incoming index {index} out of range")

    def set_incoming(self, index: int, block: BasicBlock, value: Value) -> None:
        """Set the value flowing in from *block*; the phi adopts the first value's type."""
        self._check_incoming_index(index)
        self.set_operand(index * 2, block)
        self.set_operand(index * 2 + 1, value)
        if self.type is None and value is not None:
            self.type = value.type

    def incoming_block(self, index: int) -> Optional[BasicBlock]:
        self._check_incoming_index(index)
        return self.operand(index * 2)

    def incoming_value(self, index: int) -> Optional[Value]:
        self._check_incoming_index(index)
        return self.operand(index * 2 + 1)


class ReturnInst(Instruction):
    """Return from the function, with or without a value."""

    k_opcode = Opcode.RETURN

    def __init__(self, parent: BasicBlock, value: Optional[Value] = None) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 0 if value is None else 1)
        if value is not None:
            self.set_operand(0, value)

    @property
    def is_void(self) -> bool:
        return not self.has_operands()

    @property
    def value(self) -> Optional[Value]:
        return self.operand(0) if self.has_operands() else None

    def is_terminator(self) -> bool:
        return True


class StoreInst(Instruction):
    """A store to a local or static field."""

    k_opcode = Opcode.STORE

    def __init__(self, parent: BasicBlock, pointer: Value, value: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 2)
        self.set_operand(0, pointer)
        self.set_operand(1, value)

    @property
    def pointer(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def value(self) -> Optional[Value]:
        return self.operand(1)


class StoreArrayInst(Instruction):
    """A store to an array element."""

    k_opcode = Opcode.STORE_ARRAY

    def __init__(self, parent: BasicBlock, array_ref: Value, index: Value, value: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 3)
        self.set_operand(0, array_ref)
        self.set_operand(1, index)
        self.set_operand(2, value)

    @property
    def array_ref(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def index(self) -> Optional[Value]:
        return self.operand(1)

    @property
    def value(self) -> Optional[Value]:
        return self.operand(2)


class StoreFieldInst(Instruction):
    """A store to an instance field."""

    k_opcode = Opcode.STORE_FIELD

    def __init__(self, parent: BasicBlock, field: JavaField, value: Value, object_ref: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 3)
        self.set_operand(0, field)
        self.set_operand(1, value)
        self.set_operand(2, object_ref)

    @property
    def field(self) -> Optional[JavaField]:
        return self.operand(0)

    @property
    def value(self) -> Optional[Value]:
        return self.operand(1)

    @property
    def object_ref(self) -> Optional[Value]:
        return self.operand(2)


class SwitchInst(Instruction):
    """A multi-way branch on an integer value."""

    k_opcode = Opcode.SWITCH

    def __init__(
        self,
        parent: BasicBlock,
        value: Value,
        default_target: BasicBlock,
        targets: Iterable[Tuple[Value, BasicBlock]],
    ) -> None:
        targets = list(targets)
        super().__init__(self.k_opcode, parent, parent.context.void_type, 2 + len(targets) * 2)
        self._case_count = len(targets)
        self.set_operand(0, value)
        self.set_operand(1, default_target)
        for index, (case_value, case_target) in enumerate(targets):
            self.set_operand(2 + index * 2, case_value)
            self.set_operand(3 + index * 2, case_target)

    @property
    def case_count(self) -> int:
        return self._case_count

    @property
    def value(self) -> Optional[Value]:
        return self.operand(0)

    @property
    def default_target(self) -> Optional[BasicBlock]:
        return self.operand(1)

    def _check_case_index(self, index: int) -> None:
        if not 0 <= index < self._case_count:
            raise IndexError(f"case index {index} out of range")

    def case_value(self, index: int) -> Optional[Value]:
        self._check_case_index(index)
        return self.operand(2 + index * 2)

    def case_target(self, index: int) -> Optional[BasicBlock]:
        self._check_case_index(index)
        return self.operand(3 + index * 2)

    def successor(self, index: int) -> BasicBlock:
        if index == 0:
            return self.default_target
        return self.case_target(index - 1)

    def successor_count(self) -> int:
        return self._case_count + 1

    def is_terminator(self) -> bool:
        return True


class ThrowInst(Instruction):
    """Throw an exception object."""

    k_opcode = Opcode.THROW

    def __init__(self, parent: BasicBlock, exception_ref: Value) -> None:
        super().__init__(self.k_opcode, parent, parent.context.void_type, 1)
        self.set_operand(0, exception_ref)

    @property
    def exception_ref(self) -> Optional[Value]:
        return self.operand(0)

    def is_terminator(self) -> bool:
        return True