"""The constant pool and decoding of single bytecode instructions."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from codespy.bytecode.definitions import (
    BaseType,
    CompareOp,
    CompareRhs,
    Constant,
    ConstantKind,
    Float,
    InvokeKind,
    Long,
    MathOp,
    MonitorOp,
    NullReference,
    Opcode,
    ReferenceOp,
    StackOp,
    TypeOp,
)
from codespy.bytecode.reader import ByteReader
from codespy.bytecode.visitor import CodeVisitor


class ParseErrorKind(Enum):
    BAD_MAGIC = "bad magic number"
    INVALID_ARRAY_TYPE = "invalid primitive array type"
    UNKNOWN_CONSTANT_POOL_ENTRY = "unknown constant pool entry"
    UNKNOWN_OPCODE = "unknown opcode"
    UNHANDLED_ATTRIBUTE = "unhandled attribute"


class ParseError(Exception):
    """Raised for class-file content that cannot be understood."""

    def __init__(self, kind: ParseErrorKind, message: Optional[str] = None) -> None:
        super().__init__(message or kind.value)
        self.kind = kind


@dataclass(frozen=True)
class _Entry:
    kind: ConstantKind
    value: Any


_REF_KINDS = (ConstantKind.FIELD_REF, ConstantKind.METHOD_REF, ConstantKind.INTERFACE_METHOD_REF)


def _decode_modified_utf8(raw: bytes) -> str:
    """Decode the modified UTF-8 used by class files (encoded NULs, surrogate pairs)."""
    raw = raw.replace(b"\xc0\x80", b"\x00")
    try:
        text = raw.decode("utf-8", "surrogatepass")
    except UnicodeDecodeError:
        return raw.decode("utf-8", "replace")
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


class ConstantPool:
    """The decoded constant pool of a class; index 0 and unusable slots hold nothing."""

    def __init__(self, entries: Sequence[Optional[_Entry]]) -> None:
        self._entries: List[Optional[_Entry]] = list(entries)

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _entry(self, index: int) -> Optional[_Entry]:
        if not 0 <= index < len(self._entries):
            raise ParseError(
                ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY,
                f"constant pool index {index} out of range (size {len(self._entries)})",
            )
        return self._entries[index]

    def read_constant(self, index: int) -> Constant:
        """Return the loadable constant at *index*."""
        entry = self._entry(index)
        if entry is not None:
            if entry.kind in (ConstantKind.INTEGER, ConstantKind.FLOAT, ConstantKind.LONG, ConstantKind.DOUBLE):
                return entry.value
            if entry.kind in (ConstantKind.CLASS, ConstantKind.STRING):
                return self.read_string_like(index)
        raise ParseError(ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY, f"entry {index} is not a loadable constant")

    def read_ref(self, index: int) -> Tuple[str, str, str]:
        """Return (owner, name, descriptor) of a field or method reference."""
        entry = self._entry(index)
        if entry is None or entry.kind not in _REF_KINDS:
            raise ParseError(ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY, f"entry {index} is not a member reference")
        class_index, name_and_type_index = entry.value
        name_and_type = self._entry(name_and_type_index)
        if name_and_type is None or name_and_type.kind is not ConstantKind.NAME_AND_TYPE:
            raise ParseError(
                ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY, f"entry {name_and_type_index} is not a name and type"
            )
        name_index, descriptor_index = name_and_type.value
        return self.read_string_like(class_index), self.read_utf(name_index), self.read_utf(descriptor_index)

    def read_string_like(self, index: int) -> str:
        """Return the string named by a class or string entry; an empty slot gives ''."""
        entry = self._entry(index)
        if entry is None:
            return ""
        if entry.kind in (ConstantKind.CLASS, ConstantKind.STRING):
            return self.read_utf(entry.value)
        raise ParseError(ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY, f"entry {index} is not a class or string")

    def read_utf(self, index: int) -> str:
        """Return the UTF-8 entry at *index*, or '' if the entry holds no string."""
        entry = self._entry(index)
        if entry is None or entry.kind is not ConstantKind.UTF8:
            return ""
        return entry.value


def read_constant_pool(reader: ByteReader) -> ConstantPool:
    """Read the constant pool count and entries from *reader*."""
    count = reader.read_u16()
    entries: List[Optional[_Entry]] = [None] * count
    index = 1
    while index < count:
        tag = reader.read_u8()
        try:
            kind = ConstantKind(tag)
        except ValueError:
            raise ParseError(ParseErrorKind.UNKNOWN_CONSTANT_POOL_ENTRY, f"unknown constant kind {tag}") from None
        step = 1
        value: Any
        if kind is ConstantKind.UTF8:
            value = _decode_modified_utf8(reader.read_bytes(reader.read_u16()))
        elif kind is ConstantKind.INTEGER:
            value = reader.read_i32()
        elif kind is ConstantKind.FLOAT:
            value = Float(struct.unpack(">f", reader.read_bytes(4))[0])
        elif kind is ConstantKind.LONG:
            value = Long(int.from_bytes(reader.read_bytes(8), "big", signed=True))
            step = 2  # the following slot is valid but unusable
        elif kind is ConstantKind.DOUBLE:
            value = struct.unpack(">d", reader.read_bytes(8))[0]
            step = 2
        elif kind in (ConstantKind.CLASS, ConstantKind.STRING):
            value = reader.read_u16()
        elif kind is ConstantKind.METHOD_HANDLE:
            value = (reader.read_u8(), reader.read_u16())
        else:
            value = (reader.read_u16(), reader.read_u16())
        entries[index] = _Entry(kind, value)
        index += step
    return ConstantPool(entries)


_NEWARRAY_DESCRIPTORS = {4: "[Z", 5: "[C", 6: "[F", 7: "[D", 8: "[B", 9: "[S", 10: "[I", 11: "[J"}
_L2X = (BaseType.INT, BaseType.FLOAT, BaseType.DOUBLE)
_F2X = (BaseType.INT, BaseType.LONG, BaseType.DOUBLE)
_SHIFT_AND_BITWISE = {
    Opcode.ISHL: MathOp.SHL,
    Opcode.ISHR: MathOp.SHR,
    Opcode.IUSHR: MathOp.USHR,
    Opcode.IAND: MathOp.AND,
    Opcode.IOR: MathOp.OR,
    Opcode.IXOR: MathOp.XOR,
}
_COMPARES = {
    Opcode.LCMP: (BaseType.LONG, False),
    Opcode.FCMPL: (BaseType.FLOAT, False),
    Opcode.FCMPG: (BaseType.FLOAT, True),
    Opcode.DCMPL: (BaseType.DOUBLE, False),
    Opcode.DCMPG: (BaseType.DOUBLE, True),
}
_SIMPLE_CONSTANTS = {
    Opcode.ACONST_NULL: NullReference(),
    Opcode.LCONST_0: Long(0),
    Opcode.LCONST_1: Long(1),
    Opcode.FCONST_0: Float(0.0),
    Opcode.FCONST_1: Float(1.0),
    Opcode.FCONST_2: Float(2.0),
    Opcode.DCONST_0: 0.0,
    Opcode.DCONST_1: 1.0,
}
_INT_NARROWING = {Opcode.I2B: BaseType.BYTE, Opcode.I2C: BaseType.CHAR, Opcode.I2S: BaseType.SHORT}


def _object_descriptor(name: str, prefix: str = "") -> str:
    return name if name.startswith("[") else f"{prefix}L{name};"


class CodeAttribute:
    """The code of one method, decoded one instruction at a time."""

    def __init__(self, constant_pool: ConstantPool, max_stack: int, max_locals: int, code: bytes) -> None:
        self._constant_pool = constant_pool
        self._max_stack = max_stack
        self._max_locals = max_locals
        self._code = bytes(code)

    @property
    def constant_pool(self) -> ConstantPool:
        return self._constant_pool

    @property
    def max_stack(self) -> int:
        return self._max_stack

    @property
    def max_locals(self) -> int:
        return self._max_locals

    @property
    def code_end(self) -> int:
        return len(self._code)

    def parse_inst(self, pc: int, visitor: CodeVisitor) -> int:
        """Decode the instruction at *pc*, report it to *visitor* and return its length."""
        reader = ByteReader(self._code[pc:])
        pool = self._constant_pool
        op = reader.read_u8()

        if Opcode.ICONST_M1 <= op <= Opcode.ICONST_5:
            visitor.visit_constant(op - Opcode.ICONST_M1 - 1)
            return 1
        if Opcode.ILOAD_0 <= op <= Opcode.ALOAD_3:
            offset = op - Opcode.ILOAD_0
            visitor.visit_load(BaseType(offset >> 2), offset & 0b11)
            return 1
        if Opcode.ILOAD <= op <= Opcode.ALOAD:
            visitor.visit_load(BaseType(op - Opcode.ILOAD), reader.read_u8())
            return 2
        if Opcode.ISTORE_0 <= op <= Opcode.ASTORE_3:
            offset = op - Opcode.ISTORE_0
            visitor.visit_store(BaseType(offset >> 2), offset & 0b11)
            return 1
        if Opcode.ISTORE <= op <= Opcode.ASTORE:
            visitor.visit_store(BaseType(op - Opcode.ISTORE), reader.read_u8())
            return 2
        if Opcode.IALOAD <= op <= Opcode.SALOAD:
            visitor.visit_array_load(BaseType(op - Opcode.IALOAD))
            return 1
        if Opcode.IASTORE <= op <= Opcode.SASTORE:
            visitor.visit_array_store(BaseType(op - Opcode.IASTORE))
            return 1

        if Opcode.I2L <= op < Opcode.L2I:
            visitor.visit_cast(BaseType.INT, BaseType(op - Opcode.I2L + 1))
            return 1
        if Opcode.L2I <= op < Opcode.F2I:
            visitor.visit_cast(BaseType.LONG, _L2X[op - Opcode.L2I])
            return 1
        if Opcode.F2I <= op < Opcode.D2I:
            visitor.visit_cast(BaseType.FLOAT, _F2X[op - Opcode.F2I])
            return 1
        if Opcode.D2I <= op < Opcode.I2B:
            visitor.visit_cast(BaseType.DOUBLE, BaseType(op - Opcode.D2I))
            return 1

        if Opcode.IADD <= op <= Opcode.DNEG:
            offset = op - Opcode.IADD
            visitor.visit_math_op(BaseType(offset & 0b11), MathOp(offset >> 2))
            return 1
        if Opcode.ISHL <= op <= Opcode.LXOR:
            base = op - ((op - Opcode.ISHL) & 1)
            visitor.visit_math_op(BaseType(op - base), _SHIFT_AND_BITWISE[Opcode(base)])
            return 1

        if Opcode.IFEQ <= op <= Opcode.IFLE:
            target = reader.read_i16() + pc
            visitor.visit_if_compare(CompareOp(op - Opcode.IFEQ), target, CompareRhs.ZERO)
            return 3
        if Opcode.IF_ICMPEQ <= op <= Opcode.IF_ACMPNE:
            target = reader.read_i16() + pc
            visitor.visit_if_compare(CompareOp(op - Opcode.IF_ICMPEQ), target, CompareRhs.STACK)
            return 3

        if Opcode.IRETURN <= op < Opcode.RETURN:
            visitor.visit_return(BaseType(op - Opcode.IRETURN))
            return 1
        if op in (Opcode.ARRAYLENGTH, Opcode.ATHROW):
            visitor.visit_reference_op(ReferenceOp(op - Opcode.ARRAYLENGTH))
            return 1
        if op in (Opcode.CHECKCAST, Opcode.INSTANCEOF):
            type_name = pool.read_string_like(reader.read_u16())
            visitor.visit_type_op(TypeOp(op - Opcode.CHECKCAST), _object_descriptor(type_name))
            return 3
        if op in (Opcode.MONITORENTER, Opcode.MONITOREXIT):
            visitor.visit_monitor_op(MonitorOp(op - Opcode.MONITORENTER))
            return 1

        if Opcode.GET_STATIC <= op <= Opcode.INVOKE_INTERFACE:
            return self._parse_member_access(op, reader, visitor)

        if Opcode.POP <= op <= Opcode.SWAP:
            visitor.visit_stack_op(StackOp(op - Opcode.POP))
            return 1

        if op == Opcode.TABLESWITCH:
            reader.skip(3 - (pc & 3))
            default_pc = reader.read_i32() + pc
            low = reader.read_i32()
            high = reader.read_i32()
            table = [reader.read_i32() + pc for _ in range(high - low + 1)]
            visitor.visit_table_switch(low, high, default_pc, table)
            return reader.tell()
        if op == Opcode.LOOKUPSWITCH:
            reader.skip(3 - (pc & 3))
            default_pc = reader.read_i32() + pc
            entry_count = reader.read_i32()
            pairs = [(reader.read_i32(), reader.read_i32() + pc) for _ in range(entry_count)]
            visitor.visit_lookup_switch(default_pc, pairs)
            return reader.tell()
        if op == Opcode.WIDE:
            return self._parse_wide(reader, visitor)

        return self._parse_single(op, pc, reader, visitor)

    def _parse_member_access(self, op: int, reader: ByteReader, visitor: CodeVisitor) -> int:
        owner, name, descriptor = self._constant_pool.read_ref(reader.read_u16())
        if op == Opcode.GET_STATIC:
            visitor.visit_get_field(owner, name, descriptor, False)
        elif op == Opcode.PUT_STATIC:
            visitor.visit_put_field(owner, name, descriptor, False)
        elif op == Opcode.GET_FIELD:
            visitor.visit_get_field(owner, name, descriptor, True)
        elif op == Opcode.PUT_FIELD:
            visitor.visit_put_field(owner, name, descriptor, True)
        elif op == Opcode.INVOKE_VIRTUAL:
            visitor.visit_invoke(InvokeKind.VIRTUAL, owner, name, descriptor)
        elif op == Opcode.INVOKE_SPECIAL:
            visitor.visit_invoke(InvokeKind.SPECIAL, owner, name, descriptor)
        elif op == Opcode.INVOKE_STATIC:
            visitor.visit_invoke(InvokeKind.STATIC, owner, name, descriptor)
        else:
            # Argument count and a zero byte follow.
            reader.read_u8()
            reader.read_u8()
            visitor.visit_invoke(InvokeKind.INTERFACE, owner, name, descriptor)
            return 5
        return 3

    @staticmethod
    def _parse_wide(reader: ByteReader, visitor: CodeVisitor) -> int:
        subopcode = reader.read_u8()
        local_index = reader.read_u16()
        if Opcode.ILOAD <= subopcode <= Opcode.ALOAD:
            visitor.visit_load(BaseType(subopcode - Opcode.ILOAD), local_index)
        elif Opcode.ISTORE <= subopcode <= Opcode.ASTORE:
            visitor.visit_store(BaseType(subopcode - Opcode.ISTORE), local_index)
        elif subopcode == Opcode.IINC:
            visitor.visit_iinc(local_index, reader.read_i16())
        return reader.tell()

    def _parse_single(self, op: int, pc: int, reader: ByteReader, visitor: CodeVisitor) -> int:
        pool = self._constant_pool
        if op in _SIMPLE_CONSTANTS:
            visitor.visit_constant(_SIMPLE_CONSTANTS[Opcode(op)])
            return 1
        if op == Opcode.BIPUSH:
            visitor.visit_constant(struct.unpack(">b", reader.read_bytes(1))[0])
            return 2
        if op == Opcode.SIPUSH:
            visitor.visit_constant(reader.read_i16())
            return 3
        if op == Opcode.LDC:
            visitor.visit_constant(pool.read_constant(reader.read_u8()))
            return 2
        if op in (Opcode.LDC_W, Opcode.LDC2_W):
            visitor.visit_constant(pool.read_constant(reader.read_u16()))
            return 3
        if op == Opcode.IINC:
            local_index = reader.read_u8()
            increment = struct.unpack(">b", reader.read_bytes(1))[0]
            visitor.visit_iinc(local_index, increment)
            return 3
        if op in _INT_NARROWING:
            visitor.visit_cast(BaseType.INT, _INT_NARROWING[Opcode(op)])
            return 1
        if op in _COMPARES:
            visitor.visit_compare(*_COMPARES[Opcode(op)])
            return 1
        if op == Opcode.GOTO:
            visitor.visit_goto(reader.read_i16() + pc)
            return 3
        if op == Opcode.RETURN:
            visitor.visit_return(BaseType.VOID)
            return 1
        if op == Opcode.NEW:
            class_name = pool.read_string_like(reader.read_u16())
            visitor.visit_new(f"L{class_name};", 1)
            return 3
        if op == Opcode.NEWARRAY:
            array_type = reader.read_u8()
            descriptor = _NEWARRAY_DESCRIPTORS.get(array_type)
            if descriptor is None:
                raise ParseError(ParseErrorKind.INVALID_ARRAY_TYPE, f"invalid primitive array type {array_type}")
            visitor.visit_new(descriptor, 1)
            return 2
        if op == Opcode.ANEWARRAY:
            class_name = pool.read_string_like(reader.read_u16())
            visitor.visit_new(_object_descriptor(class_name, "["), 1)
            return 3
        if op == Opcode.MULTIANEWARRAY:
            descriptor = pool.read_string_like(reader.read_u16())
            visitor.visit_new(descriptor, reader.read_u8())
            return 4
        if op in (Opcode.IFNULL, Opcode.IFNONNULL):
            target = reader.read_i16() + pc
            compare_op = CompareOp.REFERENCE_EQUAL if op == Opcode.IFNULL else CompareOp.REFERENCE_NOT_EQUAL
            visitor.visit_if_compare(compare_op, target, CompareRhs.NULL)
            return 3
        raise ParseError(ParseErrorKind.UNKNOWN_OPCODE, f"unknown opcode {op}")