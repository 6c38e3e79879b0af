import pytest

from codespy.ir.cfg import predecessors, successors
from codespy.ir.context import Context
from codespy.ir.function import Function
from codespy.ir.instructions import BranchInst, CompareInst, CompareOp, ReturnInst


@pytest.fixture
def context():
    return Context()


@pytest.fixture
def diamond(context):
    int_type = context.int_type(32)
    function = Function(context, "choose", context.function_type(context.void_type, [int_type, int_type]))
    entry = function.append_block()
    left = function.append_block()
    right = function.append_block()
    exit_block = function.append_block()
    compare = entry.append(CompareInst, CompareOp.EQUAL, function.argument(0), function.argument(1))
    entry.append(BranchInst, left, right, compare)
    left.append(BranchInst, exit_block)
    right.append(BranchInst, exit_block)
    exit_block.append(ReturnInst)
    return entry, left, right, exit_block


def test_successors(diamond):
    entry, left, right, exit_block = diamond
    assert list(successors(entry)) == [left, right]
    assert list(successors(left)) == [exit_block]
    assert list(successors(exit_block)) == []


def test_predecessors(diamond):
    entry, left, right, exit_block = diamond
    assert set(predecessors(exit_block)) == {left, right}
    assert list(predecessors(left)) == [entry]
    assert list(predecessors(entry)) == []


def test_edges_are_consistent(diamond):
    for block in diamond:
        for successor in successors(block):
            assert block in set(predecessors(successor))


def test_handler_edge_is_a_predecessor(context, diamond):
    entry, left, _, _ = diamond
    handler_block = left.parent.append_block()
    entry.add_handler(context.reference_type("java/lang/Throwable"), handler_block)
    assert list(predecessors(handler_block)) == [entry]
    assert handler_block not in list(successors(entry))