import pytest

from codespy.ir.type import ArrayType, FunctionType, IntType, ReferenceType, Type, TypeKind


def test_plain_type_keeps_kind():
    assert Type(TypeKind.VOID).kind is TypeKind.VOID


def test_kind_is_read_only():
    plain = Type(TypeKind.ANY)
    with pytest.raises(AttributeError):
        plain.kind = TypeKind.VOID
    assert plain.kind is TypeKind.ANY


def test_array_type():
    element = IntType(32)
    array = ArrayType(element)
    assert array.kind is TypeKind.ARRAY
    assert array.element_type is element


def test_nested_array_type():
    inner = ArrayType(Type(TypeKind.DOUBLE))
    outer = ArrayType(inner)
    assert outer.element_type.element_type.kind is TypeKind.DOUBLE


def test_function_type_stores_parameters_as_tuple():
    ret = Type(TypeKind.VOID)
    params = [IntType(32), ReferenceType("java/lang/String")]
    function = FunctionType(ret, params)
    assert function.kind is TypeKind.FUNCTION
    assert function.return_type is ret
    assert function.parameter_types == tuple(params)
    params.append(IntType(8))
    assert len(function.parameter_types) == 2


def test_int_type_bit_width():
    assert IntType(64).bit_width == 64
    assert IntType(64).kind is TypeKind.INTEGER


def test_reference_type_class_name():
    ref = ReferenceType("java/lang/Object")
    assert ref.class_name == "java/lang/Object"
    assert ref.kind is TypeKind.REFERENCE
    assert "java/lang/Object" in repr(ref)


def test_types_compare_by_identity():
    first = IntType(32)
    assert first == first
    assert len({IntType(32), IntType(32)}) == 2