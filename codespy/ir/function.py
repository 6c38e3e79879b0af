"""Functions with their arguments, locals and blocks."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

from codespy.ir.basic_block import BasicBlock
from codespy.ir.type import FunctionType, Type
from codespy.ir.value import Value, ValueKind

if TYPE_CHECKING:
    from codespy.ir.context import Context


class Argument(Value):
    """A formal parameter of a function."""

    k_kind = ValueKind.ARGUMENT

    def __init__(self, type: Type, index: int) -> None:
        super().__init__(self.k_kind, type)
        self._index = index

    @property
    def index(self) -> int:
        return self._index


class Local(Value):
    """A mutable local variable slot."""

    k_kind = ValueKind.LOCAL

    def __init__(self, type: Type, index: int) -> None:
        super().__init__(self.k_kind, type)
        self._index = index

    @property
    def index(self) -> int:
        return self._index


class Function(Value):
    """A function: its arguments, local slots and basic blocks."""

    k_kind = ValueKind.FUNCTION

    def __init__(self, context: Context, name: str, type: FunctionType) -> None:
        super().__init__(self.k_kind, type)
        self._context = context
        self._name = name
        self._display_name = name
        self._arguments = [Argument(param, index) for index, param in enumerate(type.parameter_types)]
        self._locals: List[Local] = []
        self._blocks: List[BasicBlock] = []

    @property
    def context(self) -> Context:
        return self._context

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def function_type(self) -> FunctionType:
        return self.type

    @property
    def arguments(self) -> Tuple[Argument, ...]:
        return tuple(self._arguments)

    @property
    def locals(self) -> Tuple[Local, ...]:
        return tuple(self._locals)

    @property
    def blocks(self) -> Tuple[BasicBlock, ...]:
        return tuple(self._blocks)

    def append_block(self) -> BasicBlock:
        block = BasicBlock(self._context, self)
        self._blocks.append(block)
        return block

    def append_local(self, type: Type) -> Local:
        local = Local(type, len(self._locals))
        self._locals.append(local)
        return local

    def argument(self, index: int) -> Argument:
        if not 0 <= index < len(self._arguments):
            raise IndexError(f"argument index {index} out of range")
        return self._arguments[index]

    def remove_block(self, block: BasicBlock) -> None:
        self._blocks.remove(block)
        block.destroy()

    def remove_local(self, local: Local) -> None:
        self._locals.remove(local)
        local.destroy()

    def set_name_prefix(self, name_prefix: str) -> None:
        """Qualify the display name with *name_prefix*, e.g. an owning class."""
        self._display_name = f"{name_prefix}.{self._name}"

    def entry_block(self) -> Optional[BasicBlock]:
        return self._blocks[0] if self._blocks else None

    def parameter_count(self) -> int:
        return len(self.function_type.parameter_types)

    def _drop_operands(self) -> None:
        for block in reversed(self._blocks):
            block.destroy()
        for local in self._locals:
            local.destroy()
        for argument in self._arguments:
            argument.destroy()
        self._blocks.clear()
        self._locals.clear()

    def __repr__(self) -> str:
        return f"<Function {self._display_name}>"