"""Lowering of bytecode into the IR, one class at a time."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from codespy.bytecode.definitions import (
    AccessFlags,
    BaseType,
    CompareOp,
    CompareRhs,
    Constant,
    Float,
    InvokeKind,
    Long,
    MathOp,
    MonitorOp,
    NullReference,
    ReferenceOp,
    StackOp,
    TypeOp,
)
from codespy.bytecode.descriptors import lower_base_type, parse_function_type, parse_type
from codespy.bytecode.visitor import ClassVisitor, CodeVisitor
from codespy.ir import instructions as ir
from codespy.ir.basic_block import BasicBlock
from codespy.ir.context import Context
from codespy.ir.function import Function
from codespy.ir.java import JavaClass
from codespy.ir.type import ArrayType, IntType, Type
from codespy.ir.value import Value

if TYPE_CHECKING:
    from codespy.bytecode.code import CodeAttribute


@dataclass
class _BlockInfo:
    block: Optional[BasicBlock] = None
    entry_stack: List[Value] = field(default_factory=list)
    handler_type: str = ""
    handler: bool = False
    visited: bool = False


@dataclass(frozen=True)
class _ExceptionRange:
    start_pc: int
    end_pc: int
    handler_pc: int


class _JumpTargetCollector(CodeVisitor):
    """Records every branch target of a method's code as a block start."""

    def __init__(self, block_map: Dict[int, _BlockInfo]) -> None:
        self._block_map = block_map

    def _mark(self, pc: int) -> None:
        self._block_map.setdefault(pc, _BlockInfo())

    def visit_goto(self, offset: int) -> None:
        self._mark(offset)

    def visit_if_compare(self, compare_op: CompareOp, true_offset: int, compare_rhs: CompareRhs) -> None:
        self._mark(true_offset)

    def visit_table_switch(self, low: int, high: int, default_pc: int, table: Sequence[int]) -> None:
        self._mark(default_pc)
        for pc in table:
            self._mark(pc)

    def visit_lookup_switch(self, default_pc: int, table: Sequence[Tuple[int, int]]) -> None:
        self._mark(default_pc)
        for _, pc in table:
            self._mark(pc)


_COMPARE_OPS = {
    CompareOp.EQUAL: ir.CompareOp.EQUAL,
    CompareOp.REFERENCE_EQUAL: ir.CompareOp.EQUAL,
    CompareOp.NOT_EQUAL: ir.CompareOp.NOT_EQUAL,
    CompareOp.REFERENCE_NOT_EQUAL: ir.CompareOp.NOT_EQUAL,
    CompareOp.LESS_THAN: ir.CompareOp.LESS_THAN,
    CompareOp.GREATER_EQUAL: ir.CompareOp.GREATER_EQUAL,
    CompareOp.GREATER_THAN: ir.CompareOp.GREATER_THAN,
    CompareOp.LESS_EQUAL: ir.CompareOp.LESS_EQUAL,
}

_BINARY_OPS = {
    MathOp.ADD: ir.BinaryOp.ADD,
    MathOp.SUB: ir.BinaryOp.SUB,
    MathOp.MUL: ir.BinaryOp.MUL,
    MathOp.DIV: ir.BinaryOp.DIV,
    MathOp.REM: ir.BinaryOp.REM,
    MathOp.SHL: ir.BinaryOp.SHL,
    MathOp.SHR: ir.BinaryOp.SHR,
    MathOp.USHR: ir.BinaryOp.USHR,
    MathOp.AND: ir.BinaryOp.AND,
    MathOp.OR: ir.BinaryOp.OR,
    MathOp.XOR: ir.BinaryOp.XOR,
}


class Frontend(ClassVisitor, CodeVisitor):
    """Builds IR classes, methods and code from the events of a class-file parse."""

    def __init__(self, context: Context) -> None:
        self._context = context
        self._class_map: Dict[str, JavaClass] = {}
        self._class: Optional[JavaClass] = None
        self._class_name = ""
        self._function: Optional[Function] = None
        self._block: Optional[BasicBlock] = None
        self._block_map: Dict[int, _BlockInfo] = {}
        self._local_map: Dict[int, Value] = {}
        self._exception_ranges: List[_ExceptionRange] = []
        self._queue: Deque[int] = deque()
        self._stack: List[Value] = []

    @property
    def class_map(self) -> Dict[str, JavaClass]:
        """Every class seen so far, by internal name."""
        return self._class_map

    # Helpers

    def _slot(self, pc: int) -> _BlockInfo:
        return self._block_map.setdefault(pc, _BlockInfo())

    def _pop(self) -> Value:
        if not self._stack:
            raise IndexError("operand stack underflow")
        return self._stack.pop()

    def _pop_many(self, amount: int) -> List[Value]:
        if amount > len(self._stack):
            raise IndexError("operand stack underflow")
        if amount == 0:
            return []
        values = self._stack[-amount:]
        del self._stack[-amount:]
        return values

    def _ensure_class(self, name: str) -> JavaClass:
        java_class = self._class_map.get(name)
        if java_class is None:
            java_class = JavaClass(self._context, name)
            self._class_map[name] = java_class
        return java_class

    def _materialise_block(self, offset: int, save_stack: bool) -> BasicBlock:
        if offset not in self._block_map:
            raise KeyError(f"no block starts at offset {offset}")
        slot = self._block_map[offset]
        if slot.handler:
            # Nothing branches to a handler; it is entered through an exception edge.
            if slot.block is None:
                slot.block = self._function.append_block()
            return slot.block

        if slot.block is None:
            slot.block = self._function.append_block()
            if self._stack:
                # Pass the operand stack to the new block through locals.
                if not save_stack:
                    raise RuntimeError("operand stack would be lost at a block boundary")
                for value in self._stack:
                    local = self._function.append_local(value.type)
                    self._block.append(ir.StoreInst, local, value)
                    slot.entry_stack.append(local)
            self._queue.append(offset)
        elif save_stack:
            if len(self._stack) > len(slot.entry_stack):
                raise RuntimeError(f"operand stack too deep on entry to block at {offset}")
            difference = len(slot.entry_stack) - len(self._stack)
            for local, value in zip(slot.entry_stack[difference:], self._stack):
                self._block.append(ir.StoreInst, local, value)
        return slot.block

    def _materialise_local(self, index: int) -> Value:
        local = self._local_map.get(index)
        if local is None:
            # A bytecode local may hold values of several types over its lifetime.
            local = self._function.append_local(self._context.any_type)
            self._local_map[index] = local
        return local

    def _lower(self, base_type: BaseType) -> Type:
        return lower_base_type(self._context, base_type)

    # Class events

    def visit(self, this_name: str, super_name: str) -> None:
        self._class_name = this_name
        self._class = self._ensure_class(this_name)

    def visit_field(self, name: str, descriptor: str) -> None:
        """Fields are created on demand by the instructions that access them."""

    def visit_method(self, access_flags: AccessFlags, name: str, descriptor: str) -> None:
        if self._class is None:
            raise RuntimeError("a method was visited before its class")
        self._queue.clear()
        self._block_map.clear()
        self._local_map.clear()
        self._exception_ranges.clear()
        self._stack.clear()

        this_type = None
        if not access_flags & AccessFlags.STATIC:
            this_type = self._context.reference_type(self._class_name)
        function_type = parse_function_type(self._context, descriptor, this_type)
        self._function = self._class.ensure_method(name, function_type)

    def visit_exception_range(self, start_pc: int, end_pc: int, handler_pc: int, type_name: str) -> None:
        handler_info = self._slot(handler_pc)
        handler_info.handler = True
        handler_info.handler_type = type_name
        self._queue.append(handler_pc)
        self._exception_ranges.append(_ExceptionRange(start_pc, end_pc, handler_pc))
        self._slot(start_pc)

    def visit_code(self, code: CodeAttribute) -> None:
        collector = _JumpTargetCollector(self._block_map)
        pc = 0
        while pc < code.code_end:
            pc += code.parse_inst(pc, collector)

        self._queue.appendleft(0)
        while self._queue:
            pc = self._queue.popleft()
            block_info = self._slot(pc)
            if block_info.visited:
                continue
            block_info.visited = True

            self._block = self._materialise_block(pc, save_stack=False)
            # Any stack values were passed through the entry stack locals.
            self._stack.clear()

            if block_info.handler:
                catch_type = self._context.reference_type(block_info.handler_type)
                self._stack.append(self._block.append(ir.CatchInst, catch_type))

            for local in block_info.entry_stack:
                self._stack.append(self._block.append(ir.LoadInst, local.type, local))

            if pc == 0:
                self._copy_arguments()

            while True:
                pc += code.parse_inst(pc, self)
                if self._block.has_terminator() or pc in self._block_map:
                    break

            if not self._block.has_terminator():
                self._block.append(ir.BranchInst, self._materialise_block(pc, save_stack=True))

            branch = self._block.terminator()
            if not isinstance(branch, ir.BranchInst) or not branch.is_conditional:
                continue

            # Process the fallthrough next.
            self._queue.appendleft(pc)
            fallthrough = self._slot(pc)
            if fallthrough.block is not None:
                false_target = branch.false_target
                false_target.replace_all_uses_with(fallthrough.block)
                false_target.remove_from_parent()
                continue

            fallthrough.block = branch.false_target
            source_stack = None
            for info in self._block_map.values():
                if info.block is branch.true_target:
                    source_stack = info.entry_stack
            if source_stack is None:
                continue
            fallthrough.entry_stack = list(source_stack)

        self._attach_handlers()

    def _copy_arguments(self) -> None:
        wide_types = (self._context.int_type(64), self._context.double_type)
        slot = 0
        for index in range(self._function.parameter_count()):
            argument = self._function.argument(index)
            local = self._materialise_local(slot)
            slot += 1
            if any(argument.type is wide for wide in wide_types):
                # Longs and doubles take two local slots.
                slot += 1
            self._block.append(ir.StoreInst, local, argument)

    def _attach_handlers(self) -> None:
        for pc, block_info in self._block_map.items():
            if block_info.block is None:
                continue
            for exception_range in self._exception_ranges:
                handler_info = self._block_map[exception_range.handler_pc]
                if exception_range.start_pc <= pc < exception_range.end_pc:
                    exception_type = self._context.reference_type(handler_info.handler_type)
                    block_info.block.add_handler(exception_type, handler_info.block)

    # Code events

    def visit_constant(self, constant: Constant) -> None:
        context = self._context
        if isinstance(constant, NullReference):
            value = context.constant_null
        elif isinstance(constant, str):
            value = context.constant_string(constant)
        elif isinstance(constant, Long):
            value = context.constant_int(context.int_type(64), int(constant))
        elif isinstance(constant, Float):
            value = context.constant_float(float(constant))
        elif isinstance(constant, float):
            value = context.constant_double(constant)
        else:
            value = context.constant_int(context.int_type(32), int(constant))
        self._stack.append(value)

    def visit_load(self, type: BaseType, local_index: int) -> None:
        local = self._materialise_local(local_index)
        self._stack.append(self._block.append(ir.LoadInst, self._lower(type), local))

    def visit_store(self, type: BaseType, local_index: int) -> None:
        value = self._pop()
        self._block.append(ir.StoreInst, self._materialise_local(local_index), value)

    def visit_array_load(self, type: BaseType) -> None:
        index = self._pop()
        array_ref = self._pop()
        if isinstance(array_ref.type, ArrayType):
            element_type = array_ref.type.element_type
        else:
            # The array's type is unknown, e.g. when it came from a local.
            element_type = self._lower(type)
        self._stack.append(self._block.append(ir.LoadArrayInst, element_type, array_ref, index))

    def visit_array_store(self, type: BaseType) -> None:
        value = self._pop()
        index = self._pop()
        array_ref = self._pop()
        self._block.append(ir.StoreArrayInst, array_ref, index, value)

    def visit_cast(self, from_type: BaseType, to_type: BaseType) -> None:
        value = self._pop()
        self._stack.append(self._block.append(ir.CastInst, self._lower(to_type), value))

    def visit_compare(self, type: BaseType, greater_on_nan: bool) -> None:
        rhs = self._pop()
        lhs = self._pop()
        self._stack.append(self._block.append(ir.JavaCompareInst, self._lower(type), lhs, rhs, greater_on_nan))

    def visit_new(self, descriptor: str, dimensions: int = 1) -> None:
        type = parse_type(self._context, descriptor)
        if not isinstance(type, ArrayType):
            self._stack.append(self._block.append(ir.NewInst, type))
            return

        type_dimensions = 0
        element: Type = type
        while isinstance(element, ArrayType):
            type_dimensions += 1
            element = element.element_type
        if dimensions > type_dimensions:
            raise ValueError(f"{dimensions} dimensions requested for {descriptor!r}")

        counts = self._pop_many(dimensions)
        self._stack.append(self._block.append(ir.NewArrayInst, type, counts))

    def visit_get_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        type = parse_type(self._context, descriptor)
        java_field = self._ensure_class(owner).ensure_field(name, type, instance)
        if instance:
            object_ref = self._pop()
            self._stack.append(self._block.append(ir.LoadFieldInst, type, java_field, object_ref))
        else:
            self._stack.append(self._block.append(ir.LoadInst, type, java_field))

    def visit_put_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        type = parse_type(self._context, descriptor)
        java_field = self._ensure_class(owner).ensure_field(name, type, instance)
        value = self._pop()
        if instance:
            object_ref = self._pop()
            self._block.append(ir.StoreFieldInst, java_field, value, object_ref)
        else:
            self._block.append(ir.StoreInst, java_field, value)

    def visit_invoke(self, kind: InvokeKind, owner: str, name: str, descriptor: str) -> None:
        this_type = None
        if kind != InvokeKind.STATIC:
            this_type = self._context.reference_type(owner)
        function_type = parse_function_type(self._context, descriptor, this_type)
        callee = self._ensure_class(owner).ensure_method(name, function_type)

        arguments = self._pop_many(len(callee.function_type.parameter_types))
        call = self._block.append(ir.CallInst, callee, arguments)
        call.is_invoke_special = kind == InvokeKind.SPECIAL
        if call.type is not self._context.void_type:
            self._stack.append(call)

    def visit_math_op(self, type: BaseType, math_op: MathOp) -> None:
        # The instruction's type is used in case an operand has the any type.
        result_type = self._lower(type)
        rhs = self._pop()
        if math_op == MathOp.NEG:
            self._stack.append(self._block.append(ir.NegateInst, result_type, rhs))
            return
        lhs = self._pop()
        self._stack.append(self._block.append(ir.BinaryInst, result_type, _BINARY_OPS[math_op], lhs, rhs))

    def visit_monitor_op(self, monitor_op: MonitorOp) -> None:
        object_ref = self._pop()
        op = ir.MonitorOp.ENTER if monitor_op == MonitorOp.ENTER else ir.MonitorOp.EXIT
        self._block.append(ir.MonitorInst, op, object_ref)

    def visit_reference_op(self, reference_op: ReferenceOp) -> None:
        if reference_op == ReferenceOp.ARRAY_LENGTH:
            array_ref = self._pop()
            self._stack.append(self._block.append(ir.ArrayLengthInst, array_ref))
        else:
            exception_ref = self._pop()
            self._block.append(ir.ThrowInst, exception_ref)

    def visit_stack_op(self, stack_op: StackOp) -> None:
        stack = self._stack
        if stack_op == StackOp.POP2:
            self._pop()
            if stack:
                self._pop()
        elif stack_op == StackOp.POP:
            self._pop()
        elif stack_op == StackOp.DUP:
            if not stack:
                raise IndexError("operand stack underflow")
            stack.append(stack[-1])
        elif stack_op == StackOp.DUP_X1:
            value1 = self._pop()
            value2 = self._pop()
            stack.extend((value1, value2, value1))
        elif stack_op == StackOp.DUP_X2:
            value1 = self._pop()
            value2 = self._pop()
            value3 = self._pop() if stack else None
            stack.append(value1)
            if value3 is not None:
                stack.append(value3)
            stack.extend((value2, value1))
        elif stack_op == StackOp.DUP2:
            value1 = self._pop()
            value2 = self._pop() if stack else None
            pair = [value1] if value2 is None else [value2, value1]
            stack.extend(pair + pair)
        elif stack_op == StackOp.DUP2_X1:
            value1 = self._pop()
            value2 = self._pop()
            value3 = self._pop() if stack else None
            if value3 is not None:
                stack.append(value2)
            stack.append(value1)
            if value3 is not None:
                stack.append(value3)
            stack.extend((value2, value1))
        elif stack_op == StackOp.SWAP:
            value1 = self._pop()
            value2 = self._pop()
            stack.extend((value1, value2))
        else:
            raise ValueError(f"unsupported stack operation {stack_op!r}")

    def visit_type_op(self, type_op: TypeOp, descriptor: str) -> None:
        check_type = parse_type(self._context, descriptor)
        value = self._pop()
        if type_op == TypeOp.CHECK_CAST:
            self._stack.append(self._block.append(ir.CastInst, check_type, value))
        else:
            self._stack.append(self._block.append(ir.InstanceOfInst, check_type, value))

    def visit_iinc(self, local_index: int, increment: int) -> None:
        local = self._materialise_local(local_index)
        int_type = self._context.int_type(32)
        value = self._block.append(ir.LoadInst, int_type, local)
        constant = self._context.constant_int(int_type, increment)
        new_value = self._block.append(ir.BinaryInst, int_type, ir.BinaryOp.ADD, value, constant)
        self._block.append(ir.StoreInst, local, new_value)

    def visit_goto(self, offset: int) -> None:
        self._block.append(ir.BranchInst, self._materialise_block(offset, save_stack=True))
        # Nothing falls through a goto.
        self._stack.clear()

    def visit_if_compare(self, compare_op: CompareOp, true_offset: int, compare_rhs: CompareRhs) -> None:
        rhs: Optional[Value] = None
        if compare_rhs == CompareRhs.STACK:
            rhs = self._pop()
        elif compare_rhs == CompareRhs.NULL:
            rhs = self._context.constant_null
        lhs = self._pop()
        if rhs is None:
            if not isinstance(lhs.type, IntType):
                raise TypeError("comparison with zero needs an integer operand")
            rhs = self._context.constant_int(lhs.type, 0)

        false_target = self._function.append_block()
        true_target = self._materialise_block(true_offset, save_stack=True)
        compare = self._block.append(ir.CompareInst, _COMPARE_OPS[compare_op], lhs, rhs)
        self._block.append(ir.BranchInst, true_target, false_target, compare)

    def _emit_switch(self, default_pc: int, cases: Iterable[Tuple[int, int]]) -> None:
        key_value = self._pop()
        key_type = key_value.type
        default_target = self._materialise_block(default_pc, save_stack=True)
        targets = [
            (self._context.constant_int(key_type, case_value), self._materialise_block(offset, save_stack=True))
            for case_value, offset in cases
        ]
        self._block.append(ir.SwitchInst, key_value, default_target, targets)

    def visit_table_switch(self, low: int, high: int, default_pc: int, table: Sequence[int]) -> None:
        self._emit_switch(default_pc, zip(count(low), table))

    def visit_lookup_switch(self, default_pc: int, table: Sequence[Tuple[int, int]]) -> None:
        self._emit_switch(default_pc, table)

    def visit_return(self, type: BaseType) -> None:
        if type == BaseType.VOID:
            self._block.append(ir.ReturnInst, None)
            return
        self._block.append(ir.ReturnInst, self._pop())