import pytest
from flatdb.engine.value_classifier import ValueType, accepts, classify, try_classify
from flatdb.engine.errors import TypeMismatchError, UnclassifiableValueError


@pytest.mark.parametrize("literal", ["0", "7", "0042", "123456789"])
def test_digits_are_int(literal):
    assert classify(literal) == ValueType.INT


@pytest.mark.parametrize("literal", ["alice", "Bob2", "x1y2", "ABC"])
def test_alphanumeric_is_text(literal):
    assert classify(literal) == ValueType.TEXT


@pytest.mark.parametrize("literal", ["", " ", "a b", "-1", "1.5", "x:y", "bob_1", "é"])
def test_unclassifiable(literal):
    assert try_classify(literal) is None
    with pytest.raises(UnclassifiableValueError):
        classify(literal)


def test_unclassifiable_is_a_type_mismatch():
    # 无法分类的值对任何列类型都是类型不匹配
    with pytest.raises(TypeMismatchError):
        classify("a-b")


def test_int_column_accepts_only_int():
    assert accepts(ValueType.INT, "12")
    assert not accepts(ValueType.INT, "abc")
    assert not accepts(ValueType.INT, "12a")


def test_text_column_widens_int():
    assert accepts(ValueType.TEXT, "abc")
    assert accepts(ValueType.TEXT, "12")
    assert not accepts(ValueType.TEXT, "a b")


def test_type_names():
    assert ValueType.from_name("int") is ValueType.INT
    assert ValueType.from_name("string") is ValueType.TEXT
    with pytest.raises(ValueError):
        ValueType.from_name("float")
