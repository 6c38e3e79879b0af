"""The instruction base class, instruction opcodes and the instruction visitor."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Tuple

from codespy.ir.type import Type
from codespy.ir.value import Use, Value, ValueKind

if TYPE_CHECKING:
    from codespy.ir.basic_block import BasicBlock


class Opcode(IntEnum):
    """Identifies the concrete class of an instruction."""

    ARRAY_LENGTH = 0
    BINARY = 1
    BRANCH = 2
    CALL = 3
    CAST = 4
    CATCH = 5
    COMPARE = 6
    EXCEPTION_HANDLER = 7
    INSTANCE_OF = 8
    JAVA_COMPARE = 9
    LOAD = 10
    LOAD_ARRAY = 11
    LOAD_FIELD = 12
    MONITOR = 13
    NEGATE = 14
    NEW = 15
    NEW_ARRAY = 16
    PHI = 17
    RETURN = 18
    STORE = 19
    STORE_ARRAY = 20
    STORE_FIELD = 21
    SWITCH = 22
    THROW = 23


class Instruction(Value):
    """An instruction living in a basic block, holding a fixed number of operands."""

    k_kind = ValueKind.INSTRUCTION
    k_opcode: ClassVar[Opcode]

    def __init__(self, opcode: Opcode, parent: BasicBlock, type: Optional[Type], operand_count: int) -> None:
        super().__init__(self.k_kind, type)
        self._opcode = opcode
        self._parent = parent
        self._operands = [Use(self) for _ in range(operand_count)]

    @property
    def opcode(self) -> Opcode:
        return self._opcode

    @property
    def parent(self) -> BasicBlock:
        return self._parent

    @property
    def operands(self) -> Tuple[Optional[Value], ...]:
        return tuple(use.value for use in self._operands)

    def has_operands(self) -> bool:
        return bool(self._operands)

    def _check_operand_index(self, index: int) -> None:
        if not 0 <= index < len(self._operands):
            raise IndexError(f"operand index {index} out of range")

    def operand(self, index: int) -> Optional[Value]:
        """Return the value used by operand *index*."""
        self._check_operand_index(index)
        return self._operands[index].value

    def set_operand(self, index: int, value: Optional[Value]) -> None:
        """Make operand *index* use *value*."""
        self._check_operand_index(index)
        self._operands[index].set(value)

    def accept(self, visitor: InstVisitor) -> Any:
        return visitor.visit(self)

    def remove_from_parent(self) -> None:
        """Remove this instruction from its block and detach it from the use graph."""
        self._parent.remove(self)

    def successor(self, index: int) -> BasicBlock:
        raise IndexError(f"successor index {index} out of range")

    def successor_count(self) -> int:
        return 0

    def is_terminator(self) -> bool:
        return False

    def _drop_operands(self) -> None:
        for use in self._operands:
            use.set(None)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._opcode.name}>"


class InstVisitor:
    """Dispatches an instruction to ``visit_<opcode>``, e.g. ``visit_binary``."""

    def visit(self, inst: Instruction) -> Any:
        method = getattr(self, f"visit_{inst.opcode.name.lower()}", None)
        if method is None:
            return self.generic_visit(inst)
        return method(inst)

    def generic_visit(self, inst: Instruction) -> Any:
        """Called for instructions without a dedicated method; does nothing."""
        return None