import pytest

from codespy.ir.context import Context
from codespy.ir.function import Function
from codespy.ir.instructions import LoadInst


@pytest.fixture
def context():
    return Context()


@pytest.fixture
def function(context):
    params = [context.int_type(32), context.double_type]
    return Function(context, "compute", context.function_type(context.void_type, params))


def test_arguments_follow_parameters(context, function):
    assert function.parameter_count() == len(function.function_type.parameter_types)
    assert [arg.type for arg in function.arguments] == list(function.function_type.parameter_types)
    assert [arg.index for arg in function.arguments] == list(range(function.parameter_count()))
    assert function.argument(1) is function.arguments[1]
    with pytest.raises(IndexError):
        function.argument(function.parameter_count())


def test_append_local_assigns_indices(context, function):
    first = function.append_local(context.int_type(32))
    second = function.append_local(context.any_type)
    assert (first.index, second.index) == (0, 1)
    assert second.type is context.any_type
    assert function.locals == (first, second)


def test_entry_block(function):
    assert function.entry_block() is None
    entry = function.append_block()
    other = function.append_block()
    assert function.entry_block() is entry
    assert function.blocks == (entry, other)
    assert entry.parent is function


def test_remove_block(context, function):
    entry = function.append_block()
    local = function.append_local(context.int_type(32))
    entry.append(LoadInst, context.int_type(32), local)
    function.remove_block(entry)
    assert function.blocks == ()
    assert not local.has_uses()


def test_remove_local(context, function):
    local = function.append_local(context.int_type(32))
    block = function.append_block()
    load = block.append(LoadInst, context.int_type(32), local)
    function.remove_local(local)
    assert function.locals == ()
    assert load.pointer is None


def test_names(function):
    assert function.name == "compute"
    assert function.display_name == function.name
    function.set_name_prefix("pkg/Calc")
    assert function.display_name == "pkg/Calc.compute"
    assert function.name == "compute"