"""Enumerations and constant values used when decoding class-file bytecode."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Union


class AccessFlags(IntFlag):
    """Access and property flags of classes, fields and methods."""

    PUBLIC = 1 << 0
    PRIVATE = 1 << 1
    PROTECTED = 1 << 2
    STATIC = 1 << 3
    #: No subclasses allowed.
    FINAL = 1 << 4
    #: Treat superclass methods specially when invoked by invokespecial.
    SUPER = 1 << 5
    INTERFACE = 1 << 9
    #: Declared abstract; must not be instantiated.
    ABSTRACT = 1 << 10
    #: Declared synthetic; not present in source; generated by the compiler.
    SYNTHETIC = 1 << 12
    #: Declared as an annotation interface.
    ANNOTATION = 1 << 13
    #: Declared as an enum class.
    ENUM = 1 << 14
    #: Is a module, not a class or interface.
    MODULE = 1 << 15


class BaseType(IntEnum):
    """Operand types encoded in typed opcodes, in opcode order."""

    INT = 0
    LONG = 1
    FLOAT = 2
    DOUBLE = 3
    REFERENCE = 4
    BYTE = 5
    CHAR = 6
    SHORT = 7
    VOID = 8


class ConstantKind(IntEnum):
    """Tags of constant pool entries."""

    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELD_REF = 9
    METHOD_REF = 10
    INTERFACE_METHOD_REF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18


class CompareOp(IntEnum):
    """Comparison performed by a conditional branch."""

    EQUAL = 0
    NOT_EQUAL = 1
    LESS_THAN = 2
    GREATER_EQUAL = 3
    GREATER_THAN = 4
    LESS_EQUAL = 5
    REFERENCE_EQUAL = 6
    REFERENCE_NOT_EQUAL = 7


class CompareRhs(IntEnum):
    """What a conditional branch compares its operand against."""

    STACK = 0
    ZERO = 1
    NULL = 2


class MathOp(IntEnum):
    """Arithmetic and bitwise operations."""

    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    REM = 4
    NEG = 5
    SHL = 6
    SHR = 7
    USHR = 8
    AND = 9
    OR = 10
    XOR = 11


class MonitorOp(IntEnum):
    """Monitor entry and exit."""

    ENTER = 0
    EXIT = 1


class ReferenceOp(IntEnum):
    """Operations consuming a single reference."""

    ARRAY_LENGTH = 0
    THROW = 1


class StackOp(IntEnum):
    """Operand stack manipulation, in opcode order."""

    POP = 0
    POP2 = 1
    DUP = 2
    DUP_X1 = 3
    DUP_X2 = 4
    DUP2 = 5
    DUP2_X1 = 6
    DUP2_X2 = 7
    SWAP = 8


class TypeOp(IntEnum):
    """Type checking operations."""

    CHECK_CAST = 0
    INSTANCE_OF = 1


class InvokeKind(IntEnum):
    """Method invocation kinds."""

    INTERFACE = 0
    SPECIAL = 1
    STATIC = 2
    VIRTUAL = 3


@dataclass(frozen=True)
class NullReference:
    """The null reference constant."""


class Long(int):
    """A 64-bit integer constant, as distinct from a plain (32-bit) ``int``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Long({int(self)})"


class Float(float):
    """A 32-bit float constant; the value is rounded to single precision."""

    __slots__ = ()

    def __new__(cls, value: float = 0.0) -> Float:
        try:
            single = struct.unpack("<f", struct.pack("<f", value))[0]
        except OverflowError:
            single = math.copysign(math.inf, value)
        return super().__new__(cls, single)

    def __repr__(self) -> str:
        return f"Float({float(self)!r})"


#: A loadable constant: null, int (32-bit), Long, Float, float (64-bit) or str.
Constant = Union[NullReference, int, Long, Float, float, str]


class Opcode(IntEnum):
    """Bytecode opcodes, including the bounds of opcode ranges."""

    # Constants
    ACONST_NULL = 1
    ICONST_M1 = 2
    ICONST_5 = 8
    LCONST_0 = 9
    LCONST_1 = 10
    FCONST_0 = 11
    FCONST_1 = 12
    FCONST_2 = 13
    DCONST_0 = 14
    DCONST_1 = 15
    BIPUSH = 16
    SIPUSH = 17
    LDC = 18
    LDC_W = 19
    LDC2_W = 20

    # Loads
    ILOAD = 21
    ALOAD = 25
    ILOAD_0 = 26
    ALOAD_3 = 45
    IALOAD = 46
    SALOAD = 53

    # Stores
    ISTORE = 54
    ASTORE = 58
    ISTORE_0 = 59
    ASTORE_3 = 78
    IASTORE = 79
    SASTORE = 86

    # Stack
    POP = 87
    SWAP = 95

    # Math
    IADD = 96
    ISUB = 100
    IMUL = 104
    IDIV = 108
    IREM = 112
    INEG = 116
    DNEG = 119
    ISHL = 120
    LSHL = 121
    ISHR = 122
    LSHR = 123
    IUSHR = 124
    LUSHR = 125
    IAND = 126
    LAND = 127
    IOR = 128
    LOR = 129
    IXOR = 130
    LXOR = 131
    IINC = 132

    # Casts
    I2L = 133
    L2I = 136
    F2I = 139
    D2I = 142
    I2B = 145
    I2C = 146
    I2S = 147

    # Comparisons
    LCMP = 148
    FCMPL = 149
    FCMPG = 150
    DCMPL = 151
    DCMPG = 152
    IFEQ = 153
    IFLE = 158
    IF_ICMPEQ = 159
    IF_ACMPNE = 166

    # Control
    GOTO = 167
    TABLESWITCH = 170
    LOOKUPSWITCH = 171
    IRETURN = 172
    RETURN = 177

    # References
    GET_STATIC = 178
    PUT_STATIC = 179
    GET_FIELD = 180
    PUT_FIELD = 181
    INVOKE_VIRTUAL = 182
    INVOKE_SPECIAL = 183
    INVOKE_STATIC = 184
    INVOKE_INTERFACE = 185
    NEW = 187
    NEWARRAY = 188
    ANEWARRAY = 189
    ARRAYLENGTH = 190
    ATHROW = 191
    CHECKCAST = 192
    INSTANCEOF = 193
    MONITORENTER = 194
    MONITOREXIT = 195

    # Extended
    WIDE = 196
    MULTIANEWARRAY = 197
    IFNULL = 198
    IFNONNULL = 199