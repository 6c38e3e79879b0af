"""Textual listing of a class and its bytecode."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

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
from codespy.bytecode.visitor import ClassVisitor, CodeVisitor

if TYPE_CHECKING:
    from codespy.bytecode.code import CodeAttribute

_TYPE_PREFIXES = {
    BaseType.INT: "i",
    BaseType.LONG: "l",
    BaseType.FLOAT: "f",
    BaseType.DOUBLE: "d",
    BaseType.REFERENCE: "a",
    BaseType.BYTE: "b",
    BaseType.CHAR: "c",
    BaseType.SHORT: "s",
    BaseType.VOID: "",
}

_INVOKE_NAMES = {
    InvokeKind.INTERFACE: "interface",
    InvokeKind.SPECIAL: "special",
    InvokeKind.STATIC: "static",
    InvokeKind.VIRTUAL: "virtual",
}

_MATH_NAMES = {
    MathOp.ADD: "add",
    MathOp.SUB: "sub",
    MathOp.MUL: "mul",
    MathOp.DIV: "div",
    MathOp.REM: "rem",
    MathOp.NEG: "neg",
    MathOp.SHL: "shl",
    MathOp.SHR: "shr",
    MathOp.USHR: "ushr",
    MathOp.AND: "and",
    MathOp.OR: "or",
    MathOp.XOR: "xor",
}

_MONITOR_NAMES = {MonitorOp.ENTER: "monitorenter", MonitorOp.EXIT: "monitorexit"}
_REFERENCE_NAMES = {ReferenceOp.ARRAY_LENGTH: "arraylength", ReferenceOp.THROW: "athrow"}
_STACK_NAMES = {
    StackOp.POP: "pop",
    StackOp.POP2: "pop2",
    StackOp.DUP: "dup",
    StackOp.DUP_X1: "dup_x1",
    StackOp.DUP_X2: "dup_x2",
    StackOp.DUP2: "dup2",
    StackOp.DUP2_X1: "dup2_x1",
    StackOp.DUP2_X2: "dup2_x2",
    StackOp.SWAP: "swap",
}
_TYPE_OP_NAMES = {TypeOp.CHECK_CAST: "checkcast", TypeOp.INSTANCE_OF: "instanceof"}
_COMPARE_SUFFIXES = {
    CompareOp.EQUAL: "eq",
    CompareOp.REFERENCE_EQUAL: "eq",
    CompareOp.NOT_EQUAL: "ne",
    CompareOp.REFERENCE_NOT_EQUAL: "ne",
    CompareOp.LESS_THAN: "lt",
    CompareOp.GREATER_EQUAL: "ge",
    CompareOp.GREATER_THAN: "gt",
    CompareOp.LESS_EQUAL: "le",
}

_SWITCH_INDENT = " " * 12


def _constant_text(constant: Constant) -> str:
    if isinstance(constant, NullReference):
        return "aconst_null"
    if isinstance(constant, str):
        return f'ldc "{constant}"'
    if isinstance(constant, Long):
        if constant in (0, 1):
            return f"lconst_{int(constant)}"
        return f"ldc ${int(constant)}"
    if isinstance(constant, Float):
        value = float(constant)
        if value in (0.0, 1.0, 2.0):
            return f"fconst_{int(value)}"
        return f"ldc ${value}"
    if isinstance(constant, float):
        if constant in (0.0, 1.0):
            return f"dconst_{int(constant)}"
        return f"ldc ${constant}"
    value = int(constant)
    if value == -1:
        return "iconst_m1"
    if 0 <= value <= 5:
        return f"iconst_{value}"
    if -128 <= value <= 127:
        return f"bipush ${value}"
    if -32768 <= value <= 32767:
        return f"sipush ${value}"
    return f"ldc ${value}"


class Dumper(ClassVisitor, CodeVisitor):
    """Collects a human-readable listing of everything it visits."""

    def __init__(self) -> None:
        self._this_name = ""
        self._parts: List[str] = []

    @property
    def this_name(self) -> str:
        return self._this_name

    def build(self) -> str:
        """Return the listing produced so far."""
        return "".join(self._parts)

    def _emit(self, text: str) -> None:
        self._parts.append(text)

    def visit(self, this_name: str, super_name: str) -> None:
        self._this_name = this_name
        self._emit(f"class {this_name} extends {super_name}\n")

    def visit_field(self, name: str, descriptor: str) -> None:
        self._emit(f"field {name} {descriptor}\n")

    def visit_method(self, access_flags: AccessFlags, name: str, descriptor: str) -> None:
        self._emit(f"\nmethod {name} {descriptor}\n")

    def visit_code(self, code: CodeAttribute) -> None:
        pc = 0
        while pc < code.code_end:
            self._emit(f"    {pc:>4}: ")
            pc += code.parse_inst(pc, self)

    def visit_exception_range(self, start_pc: int, end_pc: int, handler_pc: int, type_name: str) -> None:
        self._emit(f"{type_name}: {start_pc} -> {end_pc} handled by {handler_pc}\n")

    def visit_constant(self, constant: Constant) -> None:
        self._emit(_constant_text(constant) + "\n")

    def visit_load(self, type: BaseType, local_index: int) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}load {local_index}\n")

    def visit_store(self, type: BaseType, local_index: int) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}store {local_index}\n")

    def visit_array_load(self, type: BaseType) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}aload\n")

    def visit_array_store(self, type: BaseType) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}astore\n")

    def visit_cast(self, from_type: BaseType, to_type: BaseType) -> None:
        self._emit(f"{_TYPE_PREFIXES[from_type]}2{_TYPE_PREFIXES[to_type]}\n")

    def visit_compare(self, type: BaseType, greater_on_nan: bool) -> None:
        suffix = ""
        if type in (BaseType.FLOAT, BaseType.DOUBLE):
            suffix = "g" if greater_on_nan else "l"
        self._emit(f"{_TYPE_PREFIXES[type]}cmp{suffix}\n")

    def visit_new(self, descriptor: str, dimensions: int = 1) -> None:
        if dimensions != 1:
            self._emit(f"new {descriptor}, {dimensions}\n")
        else:
            self._emit(f"new {descriptor}\n")

    def visit_get_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        kind = "field" if instance else "static"
        self._emit(f"get{kind} {owner}.{name}:{descriptor}\n")

    def visit_put_field(self, owner: str, name: str, descriptor: str, instance: bool) -> None:
        kind = "field" if instance else "static"
        self._emit(f"put{kind} {owner}.{name}:{descriptor}\n")

    def visit_invoke(self, kind: InvokeKind, owner: str, name: str, descriptor: str) -> None:
        self._emit(f"invoke{_INVOKE_NAMES[kind]} {owner}.{name}:{descriptor}\n")

    def visit_math_op(self, type: BaseType, math_op: MathOp) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}{_MATH_NAMES[math_op]}\n")

    def visit_monitor_op(self, monitor_op: MonitorOp) -> None:
        self._emit(_MONITOR_NAMES[monitor_op] + "\n")

    def visit_reference_op(self, reference_op: ReferenceOp) -> None:
        self._emit(_REFERENCE_NAMES[reference_op] + "\n")

    def visit_stack_op(self, stack_op: StackOp) -> None:
        self._emit(_STACK_NAMES[stack_op] + "\n")

    def visit_type_op(self, type_op: TypeOp, descriptor: str) -> None:
        self._emit(f"{_TYPE_OP_NAMES[type_op]} {descriptor}\n")

    def visit_iinc(self, local_index: int, increment: int) -> None:
        self._emit(f"iinc {local_index}, {increment}\n")

    def visit_goto(self, offset: int) -> None:
        self._emit(f"goto {offset}\n")

    def visit_if_compare(self, compare_op: CompareOp, true_offset: int, compare_rhs: CompareRhs) -> None:
        if compare_rhs == CompareRhs.NULL:
            negation = "non" if compare_op == CompareOp.REFERENCE_NOT_EQUAL else ""
            self._emit(f"if{negation}null {true_offset}\n")
            return
        infix = ""
        if compare_op in (CompareOp.REFERENCE_EQUAL, CompareOp.REFERENCE_NOT_EQUAL):
            infix = "_acmp"
        elif compare_rhs != CompareRhs.ZERO:
            infix = "_icmp"
        self._emit(f"if{infix}{_COMPARE_SUFFIXES[compare_op]} {true_offset}\n")

    def visit_table_switch(self, low: int, high: int, default_pc: int, table: Sequence[int]) -> None:
        self._emit("tableswitch\n")
        for key, target in zip(range(low, high + 1), table):
            self._emit(f"{_SWITCH_INDENT}{key}: {target}\n")
        self._emit(f"{_SWITCH_INDENT}default: {default_pc}\n")

    def visit_lookup_switch(self, default_pc: int, table: Sequence[Tuple[int, int]]) -> None:
        self._emit("lookupswitch\n")
        for key, target in table:
            self._emit(f"{_SWITCH_INDENT}{key}: {target}\n")
        self._emit(f"{_SWITCH_INDENT}default: {default_pc}\n")

    def visit_return(self, type: BaseType) -> None:
        self._emit(f"{_TYPE_PREFIXES[type]}return\n")