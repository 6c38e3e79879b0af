import pytest

from codespy.bytecode.code import CodeAttribute, ConstantPool, read_constant_pool
from codespy.bytecode.definitions import AccessFlags
from codespy.bytecode.descriptors import parse_function_type
from codespy.bytecode.frontend import Frontend
from codespy.bytecode.reader import ByteReader
from codespy.ir import instructions as ir
from codespy.ir.cfg import predecessors, successors
from codespy.ir.context import Context


def _run(descriptor, code, pool=None, ranges=(), access=AccessFlags.STATIC, name="f"):
    context = Context()
    frontend = Frontend(context)
    frontend.visit("Foo", "java/lang/Object")
    frontend.visit_method(access, name, descriptor)
    for start_pc, end_pc, handler_pc, type_name in ranges:
        frontend.visit_exception_range(start_pc, end_pc, handler_pc, type_name)
    frontend.visit_code(CodeAttribute(pool or ConstantPool([]), 4, 4, bytes(code)))
    this_type = None if access & AccessFlags.STATIC else context.reference_type("Foo")
    function_type = parse_function_type(context, descriptor, this_type)
    function = frontend.class_map["Foo"].ensure_method(name, function_type)
    return context, frontend, function


def _argument_locals(block):
    return {
        inst.value: inst.pointer
        for inst in block
        if isinstance(inst, ir.StoreInst)
    }


def test_straight_line_add():
    # iload_0, iload_1, iadd, ireturn
    context, _, function = _run("(II)I", [0x1A, 0x1B, 0x60, 0xAC])
    entry = function.entry_block()
    ret = entry.terminator()
    assert isinstance(ret, ir.ReturnInst)
    result = ret.value
    assert isinstance(result, ir.BinaryInst)
    assert result.op == ir.BinaryOp.ADD
    assert result.type is context.int_type(32)
    locals_by_arg = _argument_locals(entry)
    assert result.lhs.pointer is locals_by_arg[function.argument(0)]
    assert result.rhs.pointer is locals_by_arg[function.argument(1)]
    assert list(successors(entry)) == []


def test_swap_reverses_operands():
    # iload_0, iload_1, swap, isub, ireturn
    _, _, function = _run("(II)I", [0x1A, 0x1B, 0x5F, 0x64, 0xAC])
    entry = function.entry_block()
    result = entry.terminator().value
    assert result.op == ir.BinaryOp.SUB
    locals_by_arg = _argument_locals(entry)
    assert result.lhs.pointer is locals_by_arg[function.argument(1)]
    assert result.rhs.pointer is locals_by_arg[function.argument(0)]


def test_dup_uses_same_value_twice():
    # iconst_1, dup, iadd, ireturn
    _, _, function = _run("()I", [0x04, 0x59, 0x60, 0xAC])
    result = function.entry_block().terminator().value
    assert result.lhs is result.rhs
    assert result.lhs.value == 1


def test_long_argument_takes_two_slots():
    # iload_2, i2l, lreturn
    context, _, function = _run("(JI)J", [0x1C, 0x85, 0xAD])
    entry = function.entry_block()
    cast = entry.terminator().value
    assert isinstance(cast, ir.CastInst)
    assert cast.type is context.int_type(64)
    locals_by_arg = _argument_locals(entry)
    assert cast.value.pointer is locals_by_arg[function.argument(1)]


def test_conditional_branch():
    # 0 iload_0, 1 ifge 7, 4 iload_0, 5 ineg, 6 ireturn, 7 iload_0, 8 ireturn
    code = [0x1A, 0x9C, 0x00, 0x06, 0x1A, 0x74, 0xAC, 0x1A, 0xAC]
    _, _, function = _run("(I)I", code)
    entry = function.entry_block()
    branch = entry.terminator()
    assert isinstance(branch, ir.BranchInst)
    assert branch.is_conditional
    assert branch.condition.op == ir.CompareOp.GREATER_EQUAL
    assert branch.condition.rhs.value == 0
    assert list(successors(entry)) == [branch.true_target, branch.false_target]
    assert isinstance(branch.true_target.terminator().value, ir.LoadInst)
    assert isinstance(branch.false_target.terminator().value, ir.NegateInst)
    assert list(predecessors(branch.false_target)) == [entry]


def test_stack_carried_across_blocks_through_local():
    # 0 iload_0, 1 ifeq 8, 4 iconst_1, 5 goto 9, 8 iconst_2, 9 ireturn
    code = [0x1A, 0x99, 0x00, 0x07, 0x04, 0xA7, 0x00, 0x04, 0x05, 0xAC]
    _, _, function = _run("(I)I", code)
    entry = function.entry_block()
    branch = entry.terminator()
    join = branch.false_target.terminator().target
    load = join.terminator().value
    assert isinstance(load, ir.LoadInst)
    local = load.pointer
    stored = sorted(
        inst.value.value
        for pred in predecessors(join)
        for inst in pred
        if isinstance(inst, ir.StoreInst) and inst.pointer is local
    )
    assert stored == [1, 2]


def test_table_switch():
    code = [
        0x1A, 0xAA, 0x00, 0x00,
        0x00, 0x00, 0x00, 27,
        0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x01,
        0x00, 0x00, 0x00, 23,
        0x00, 0x00, 0x00, 25,
        0x04, 0xAC, 0x05, 0xAC, 0x03, 0xAC,
    ]
    _, _, function = _run("(I)I", code)
    switch = function.entry_block().terminator()
    assert isinstance(switch, ir.SwitchInst)
    assert switch.case_count == 2
    assert [switch.case_value(i).value for i in range(2)] == [0, 1]
    returned = [switch.case_target(i).terminator().value.value for i in range(2)]
    assert returned == [1, 2]
    assert switch.default_target.terminator().value.value == 0


def test_exception_handler_gets_catch_and_edge():
    # 0 iconst_0, 1 ireturn, 2 athrow (handler)
    context, _, function = _run("()I", [0x03, 0xAC, 0xBF], ranges=[(0, 2, 2, "java/lang/Exception")])
    entry = function.entry_block()
    handlers = entry.handlers
    assert len(handlers) == 1
    exception_type = context.reference_type("java/lang/Exception")
    assert handlers[0].type is exception_type
    handler_block = handlers[0].target
    insts = handler_block.insts
    assert isinstance(insts[0], ir.CatchInst)
    assert insts[0].type is exception_type
    assert isinstance(insts[-1], ir.ThrowInst)
    assert insts[-1].exception_ref is insts[0]


def _pool(entries_bytes, count):
    return read_constant_pool(ByteReader(count.to_bytes(2, "big") + entries_bytes))


def test_invoke_static_creates_callee():
    data = (
        b"\x01\x00\x03Foo"
        b"\x07\x00\x01"
        b"\x01\x00\x01g"
        b"\x01\x00\x04(I)V"
        b"\x0c\x00\x03\x00\x04"
        b"\x0a\x00\x02\x00\x05"
    )
    pool = _pool(data, 7)
    # iconst_2, invokestatic #6, return
    context, frontend, function = _run("()V", [0x05, 0xB8, 0x00, 0x06, 0xB1], pool=pool)
    insts = function.entry_block().insts
    call = insts[0]
    assert isinstance(call, ir.CallInst)
    callee = frontend.class_map["Foo"].ensure_method("g", parse_function_type(context, "(I)V", None))
    assert call.callee is callee
    assert [argument.value for argument in call.arguments] == [2]
    assert call.is_invoke_special is False
    assert isinstance(insts[1], ir.ReturnInst)
    assert insts[1].is_void


def test_instance_method_has_this_argument():
    context, _, function = _run("()V", [0xB1], access=AccessFlags.PUBLIC, name="run")
    assert function.parameter_count() == 1
    assert function.argument(0).type is context.reference_type("Foo")


def test_new_primitive_array_takes_count():
    context, frontend, function = _run("()V", [0xB1])
    assert function.entry_block().terminator().is_void
    # iconst_3, newarray int, areturn
    _, _, function = _run("()[I", [0x06, 0xBC, 0x0A, 0xB0])
    new_array = function.entry_block().terminator().value
    assert isinstance(new_array, ir.NewArrayInst)
    assert new_array.dimensions == 1
    assert new_array.count(0).value == 3


def test_unsupported_dup2_x2_raises():
    with pytest.raises(ValueError):
        _run("()V", [0x03, 0x03, 0x03, 0x03, 0x5E, 0xB1])


def test_return_with_empty_stack_raises():
    with pytest.raises(IndexError):
        _run("()I", [0xAC])


def test_method_before_class_raises():
    frontend = Frontend(Context())
    with pytest.raises(RuntimeError):
        frontend.visit_method(AccessFlags.STATIC, "f", "()V")