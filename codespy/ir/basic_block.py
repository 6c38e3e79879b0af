"""Basic blocks and their exception handler edges."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple, Type as PyType, TypeVar

from codespy.ir.instruction import Instruction, Opcode
from codespy.ir.type import Type
from codespy.ir.value import Value, ValueKind

if TYPE_CHECKING:
    from codespy.ir.context import Context
    from codespy.ir.function import Function

_I = TypeVar("_I", bound=Instruction)


class ExceptionHandler(Instruction):
    """An edge from a block to the handler for exceptions of a given type."""

    k_opcode = Opcode.EXCEPTION_HANDLER

    def __init__(self, parent: BasicBlock, exception_type: Type, target: BasicBlock) -> None:
        super().__init__(self.k_opcode, parent, exception_type, 1)
        self.set_operand(0, target)

    @property
    def target(self) -> Optional[BasicBlock]:
        return self.operand(0)


class BasicBlock(Value):
    """A straight-line sequence of instructions ending in a terminator."""

    k_kind = ValueKind.BASIC_BLOCK

    def __init__(self, context: Context, parent: Function) -> None:
        super().__init__(self.k_kind, context.label_type)
        self._context = context
        self._parent = parent
        self._insts: List[Instruction] = []
        self._handlers: List[ExceptionHandler] = []

    @property
    def context(self) -> Context:
        return self._context

    @property
    def parent(self) -> Function:
        return self._parent

    @property
    def insts(self) -> Tuple[Instruction, ...]:
        return tuple(self._insts)

    @property
    def handlers(self) -> Tuple[ExceptionHandler, ...]:
        return tuple(self._handlers)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(tuple(self._insts))

    def __len__(self) -> int:
        return len(self._insts)

    def add_handler(self, exception_type: Type, target: BasicBlock) -> ExceptionHandler:
        handler = ExceptionHandler(self, exception_type, target)
        self._handlers.append(handler)
        return handler

    def insert(self, before: Optional[Instruction], inst_cls: PyType[_I], *args: Any) -> _I:
        """Create an instruction and place it before *before*, or at the end if None."""
        position = len(self._insts) if before is None else self._insts.index(before)
        inst = inst_cls(self, *args)
        self._insts.insert(position, inst)
        return inst

    def prepend(self, inst_cls: PyType[_I], *args: Any) -> _I:
        return self.insert(self._insts[0] if self._insts else None, inst_cls, *args)

    def append(self, inst_cls: PyType[_I], *args: Any) -> _I:
        return self.insert(None, inst_cls, *args)

    def remove(self, inst: Instruction) -> None:
        """Remove *inst* from this block and detach it from the use graph."""
        self._insts.remove(inst)
        inst.destroy()

    def remove_from_parent(self) -> None:
        self._parent.remove_block(self)

    def successor(self, index: int) -> BasicBlock:
        terminator = self.terminator()
        if terminator is None:
            raise IndexError(f"successor index {index} out of range")
        return terminator.successor(index)

    def successor_count(self) -> int:
        terminator = self.terminator()
        return terminator.successor_count() if terminator is not None else 0

    def has_terminator(self) -> bool:
        return bool(self._insts) and self._insts[-1].is_terminator()

    def terminator(self) -> Optional[Instruction]:
        """Return the last instruction if it is a terminator, otherwise None."""
        return self._insts[-1] if self.has_terminator() else None

    def _drop_operands(self) -> None:
        for inst in reversed(self._insts):
            inst.destroy()
        for handler in self._handlers:
            handler.destroy()
        self._insts.clear()
        self._handlers.clear()

    def __repr__(self) -> str:
        return f"<BasicBlock with {len(self._insts)} instructions>"