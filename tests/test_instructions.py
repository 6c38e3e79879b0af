import pytest

from codespy.ir.context import Context
from codespy.ir.function import Function
from codespy.ir.instruction import Opcode
from codespy.ir.instructions import (
    ArrayLengthInst,
    BinaryInst,
    BinaryOp,
    BranchInst,
    CallInst,
    CompareInst,
    CompareOp,
    JavaCompareInst,
    LoadFieldInst,
    MonitorInst,
    MonitorOp,
    NewArrayInst,
    PhiInst,
    ReturnInst,
    StoreFieldInst,
    SwitchInst,
    ThrowInst,
)
from codespy.ir.java import JavaClass


@pytest.fixture
def context():
    return Context()


@pytest.fixture
def function(context):
    int_type = context.int_type(32)
    return Function(context, "run", context.function_type(int_type, [int_type, int_type]))


@pytest.fixture
def block(function):
    return function.append_block()


def test_binary_inst(context, function, block):
    int_type = context.int_type(32)
    lhs, rhs = function.argument(0), function.argument(1)
    add = block.append(BinaryInst, int_type, BinaryOp.ADD, lhs, rhs)
    assert add.op is BinaryOp.ADD
    assert add.lhs is lhs
    assert add.rhs is rhs
    assert add.type is int_type
    assert add.opcode is Opcode.BINARY


def test_conditional_branch(context, function, block):
    true_block = function.append_block()
    false_block = function.append_block()
    compare = block.append(CompareInst, CompareOp.LESS_THAN, function.argument(0), function.argument(1))
    branch = block.append(BranchInst, true_block, false_block, compare)
    assert branch.is_conditional is True
    assert branch.true_target is true_block
    assert branch.false_target is false_block
    assert branch.condition is compare
    assert branch.successor_count() == 2
    assert [branch.successor(0), branch.successor(1)] == [true_block, false_block]
    assert branch.is_terminator() is True
    with pytest.raises(IndexError):
        branch.successor(2)


def test_unconditional_branch(function, block):
    target = function.append_block()
    branch = block.append(BranchInst, target)
    assert branch.is_conditional is False
    assert branch.target is target
    assert branch.false_target is None
    assert branch.condition is None
    assert branch.successor_count() == 1
    assert list(target.users()) == [branch]


def test_branch_rejects_half_conditional(function, block):
    with pytest.raises(ValueError):
        block.append(BranchInst, function.append_block(), function.append_block())


def test_compare_inst(function, block):
    lhs, rhs = function.argument(0), function.argument(1)
    compare = block.append(CompareInst, CompareOp.EQUAL, lhs, rhs)
    assert compare.op is CompareOp.EQUAL
    assert (compare.lhs, compare.rhs) == (lhs, rhs)


def test_call_inst(context, function, block):
    callee = Function(context, "helper", context.function_type(context.double_type, [context.int_type(32)]))
    call = block.append(CallInst, callee, [function.argument(0)])
    assert call.callee is callee
    assert call.arguments == [function.argument(0)]
    assert call.type is context.double_type
    assert call.is_invoke_special is False
    call.is_invoke_special = True
    assert call.is_invoke_special is True
    assert list(callee.users()) == [call]


def test_return_inst(function, block):
    void_return = block.append(ReturnInst)
    assert void_return.is_void is True
    assert void_return.value is None
    value_return = block.append(ReturnInst, function.argument(0))
    assert value_return.is_void is False
    assert value_return.value is function.argument(0)
    assert value_return.is_terminator() is True
    assert value_return.successor_count() == 0


def test_switch_inst(context, function, block):
    int_type = context.int_type(32)
    default = function.append_block()
    first = function.append_block()
    second = function.append_block()
    one = context.constant_int(int_type, 1)
    two = context.constant_int(int_type, 2)
    switch = block.append(SwitchInst, function.argument(0), default, [(one, first), (two, second)])
    assert switch.case_count == 2
    assert switch.value is function.argument(0)
    assert switch.default_target is default
    assert (switch.case_value(0), switch.case_target(0)) == (one, first)
    assert (switch.case_value(1), switch.case_target(1)) == (two, second)
    assert switch.successor_count() == 3
    assert [switch.successor(i) for i in range(3)] == [default, first, second]
    with pytest.raises(IndexError):
        switch.case_value(2)


def test_phi_inst(function, block):
    left = function.append_block()
    right = function.append_block()
    phi = block.append(PhiInst, 2)
    assert phi.type is None
    phi.set_incoming(0, left, function.argument(0))
    phi.set_incoming(1, right, function.argument(1))
    assert phi.incoming_count == 2
    assert phi.incoming_block(0) is left
    assert phi.incoming_value(1) is function.argument(1)
    assert phi.type is function.argument(0).type
    with pytest.raises(IndexError):
        phi.incoming_value(2)


def test_field_instructions(context, function, block):
    owner = JavaClass(context, "pkg/Point")
    field = owner.ensure_field("x", context.int_type(32), True)
    object_ref = function.append_local(context.reference_type("pkg/Point"))
    load = block.append(LoadFieldInst, context.int_type(32), field, object_ref)
    assert load.field is field
    assert load.object_ref is object_ref
    store = block.append(StoreFieldInst, field, function.argument(0), object_ref)
    assert store.field is field
    assert store.value is function.argument(0)
    assert store.object_ref is object_ref


def test_new_array_inst(context, function, block):
    array_type = context.array_type(context.array_type(context.int_type(32)))
    counts = [function.argument(0), function.argument(1)]
    new_array = block.append(NewArrayInst, array_type, counts)
    assert new_array.dimensions == len(counts)
    assert [new_array.count(0), new_array.count(1)] == counts
    assert new_array.type is array_type


def test_misc_instructions(context, function, block):
    ref = function.append_local(context.reference_type("java/lang/Object"))
    length = block.append(ArrayLengthInst, ref)
    assert length.array_ref is ref
    assert length.type is context.int_type(32)
    monitor = block.append(MonitorInst, MonitorOp.ENTER, ref)
    assert monitor.op is MonitorOp.ENTER
    assert monitor.object_ref is ref
    compare = block.append(JavaCompareInst, context.float_type, function.argument(0), function.argument(1), True)
    assert compare.greater_on_nan is True
    assert compare.operand_type is context.float_type
    throw = block.append(ThrowInst, ref)
    assert throw.exception_ref is ref
    assert throw.is_terminator() is True
    assert throw.successor_count() == 0