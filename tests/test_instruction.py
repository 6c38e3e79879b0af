import pytest

from codespy.ir.context import Context
from codespy.ir.function import Function
from codespy.ir.instruction import InstVisitor, Opcode
from codespy.ir.instructions import LoadInst, ReturnInst, StoreInst


@pytest.fixture
def context():
    return Context()


@pytest.fixture
def function(context):
    return Function(context, "run", context.function_type(context.void_type, [context.int_type(32)]))


@pytest.fixture
def block(function):
    return function.append_block()


def test_set_operand_registers_and_moves_uses(context, function, block):
    local = function.append_local(context.int_type(32))
    argument = function.argument(0)
    other = function.append_local(context.int_type(32))
    store = block.append(StoreInst, local, argument)
    assert store.operand(0) is local
    assert store.operand(1) is argument
    assert list(argument.users()) == [store]
    store.set_operand(1, other)
    assert not argument.has_uses()
    assert list(other.users()) == [store]


def test_operand_index_out_of_range(context, function, block):
    local = function.append_local(context.int_type(32))
    load = block.append(LoadInst, context.int_type(32), local)
    with pytest.raises(IndexError):
        load.operand(1)
    with pytest.raises(IndexError):
        load.operand(-1)
    with pytest.raises(IndexError):
        load.set_operand(3, local)


def test_opcode_matches_class(context, function, block):
    local = function.append_local(context.int_type(32))
    store = block.append(StoreInst, local, function.argument(0))
    assert store.opcode is Opcode.STORE
    assert store.opcode is StoreInst.k_opcode
    assert store.parent is block


def test_accept_dispatches_by_opcode(context, function, block):
    local = function.append_local(context.int_type(32))
    store = block.append(StoreInst, local, function.argument(0))

    class Recorder(InstVisitor):
        def __init__(self):
            self.seen = []

        def visit_store(self, inst):
            self.seen.append(inst)
            return inst.pointer

    recorder = Recorder()
    assert store.accept(recorder) is local
    assert recorder.seen == [store]


def test_accept_falls_back_to_generic_visit(context, function, block):
    local = function.append_local(context.int_type(32))
    load = block.append(LoadInst, context.int_type(32), local)

    class Fallback(InstVisitor):
        def generic_visit(self, inst):
            return ("generic", inst)

    assert load.accept(Fallback()) == ("generic", load)
    assert load.accept(InstVisitor()) is None


def test_remove_from_parent_drops_operands(context, function, block):
    local = function.append_local(context.int_type(32))
    load = block.append(LoadInst, context.int_type(32), local)
    load.remove_from_parent()
    assert load not in block.insts
    assert not local.has_uses()
    assert load.operand(0) is None


def test_non_terminator_has_no_successors(context, function, block):
    local = function.append_local(context.int_type(32))
    load = block.append(LoadInst, context.int_type(32), local)
    assert load.is_terminator() is False
    assert load.successor_count() == 0
    with pytest.raises(IndexError):
        load.successor(0)


def test_replace_all_uses_updates_operands(context, function, block):
    local = function.append_local(context.int_type(32))
    load = block.append(LoadInst, context.int_type(32), local)
    ret = block.append(ReturnInst, load)
    replacement = context.constant_int(context.int_type(32), 7)
    load.replace_all_uses_with(replacement)
    assert ret.value is replacement
    assert not load.has_uses()
    assert ret.has_operands() is True