"""
值分类器

把用户输入的字面量归类为 int（纯数字）或 string（字母数字），
并给出"某列是否接受某值"的判断。int 可以放入 string 列（类型拓宽），
反之不行。
"""
import re
from enum import Enum
from typing import Optional

from flatdb.config import INT_TYPE_NAME, TEXT_TYPE_NAME
from flatdb.engine.errors import UnclassifiableValueError

_INT_RE = re.compile(r'[0-9]+')
_TEXT_RE = re.compile(r'[A-Za-z0-9]+')


class ValueType(Enum):
    INT = INT_TYPE_NAME
    TEXT = TEXT_TYPE_NAME

    @staticmethod
    def from_name(name: str) -> 'ValueType':
        """按模式文件中的类型名（int / string）取枚举值"""
        for value_type in ValueType:
            if value_type.value == name:
                return value_type
        raise ValueError(f"Unknown column type '{name}'")


def try_classify(literal: str) -> Optional[ValueType]:
    if _INT_RE.fullmatch(literal):
        return ValueType.INT
    if _TEXT_RE.fullmatch(literal):
        return ValueType.TEXT
    return None


def classify(literal: str) -> ValueType:
    """返回字面量的类型；无法分类时抛出 UnclassifiableValueError。"""
    value_type = try_classify(literal)
    if value_type is None:
        raise UnclassifiableValueError(literal)
    return value_type


def accepts(column_type: ValueType, literal: str) -> bool:
    """column_type 列能否存放 literal（string 列接受 int 值）。"""
    value_type = try_classify(literal)
    if value_type is None:
        return False
    return value_type == column_type or (column_type == ValueType.TEXT and value_type == ValueType.INT)
