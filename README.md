# codespy

codespy decodes Java bytecode. It reads a class file's constant pool,
decodes method code one instruction at a time, turns that code into a
readable listing, and lowers it into a small intermediate representation
(IR) of functions, basic blocks and instructions.

It needs nothing beyond the Python standard library (Python 3.10 or later).

```
pip install .
```

## What the package does not do

There is no reader for a whole `.class` file and no command-line tool.
The header, fields, methods and attribute tables of a class file are not
walked for you: you read the constant pool with `read_constant_pool`,
build a `CodeAttribute` from a method's code bytes yourself, and call the
visitor methods (`visit`, `visit_method`, `visit_exception_range`,
`visit_code`) in the order a class file presents them.

## Building blocks

- `codespy.bytecode.reader.ByteReader` — a cursor over bytes with
  big-endian `read_u8`, `read_u16`, `read_i16`, `read_u32`, `read_i32`,
  `read_u64`, `read_bytes`, `skip`, `seek` and `tell`. Reading past the end
  raises `StreamError`.
- `codespy.bytecode.code.read_constant_pool(reader)` — reads the constant
  pool count and entries and returns a `ConstantPool` with `read_constant`,
  `read_ref`, `read_string_like` and `read_utf`.
- `codespy.bytecode.code.CodeAttribute(pool, max_stack, max_locals, code)`
  — `parse_inst(pc, visitor)` decodes the instruction at `pc`, reports it
  to a `CodeVisitor` and returns its length. Unknown opcodes and bad array
  types raise `ParseError`, whose `kind` is a `ParseErrorKind`.
- `codespy.bytecode.visitor` — `ClassVisitor` (abstract) and `CodeVisitor`
  (every method does nothing by default).

## A listing of some code

```python
from codespy.bytecode.code import CodeAttribute, read_constant_pool
from codespy.bytecode.dumper import Dumper
from codespy.bytecode.reader import ByteReader

pool = read_constant_pool(ByteReader(b"\x00\x01"))  # an empty pool
code = CodeAttribute(pool, 1, 1, bytes([0x04, 0x3C, 0xB1]))

dumper = Dumper()
dumper.visit_code(code)
print(dumper.build())
```

prints

```
       0: iconst_1
       1: istore 1
       2: return
```

`Dumper` also writes lines for `visit` (`class A extends B`),
`visit_field`, `visit_method` and `visit_exception_range`.

## Lowering to IR

`codespy.bytecode.frontend.Frontend` is a visitor that builds IR classes
and methods in a `codespy.ir.context.Context`:

```python
from codespy.bytecode.definitions import AccessFlags
from codespy.bytecode.frontend import Frontend
from codespy.ir.context import Context

context = Context()
frontend = Frontend(context)
frontend.visit("Example", "java/lang/Object")
frontend.visit_method(AccessFlags.STATIC, "run", "()V")
frontend.visit_code(code)

method = frontend.class_map["Example"].methods[0]
for block in method.blocks:
    for inst in block:
        print(inst)
```

Types and constants are interned in the `Context`, so
`context.int_type(32) is context.int_type(32)` holds. Descriptors can be
turned into IR types with `codespy.bytecode.descriptors.parse_type` and
`parse_function_type`. Control flow can be walked with
`codespy.ir.cfg.predecessors` and `codespy.ir.cfg.successors`, and
instructions dispatched with `codespy.ir.instruction.InstVisitor`.

## Running the tests

```
pip install .[test]
pytest
```