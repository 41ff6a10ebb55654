# -*- coding: utf-8 -*-
"""
异常体系 - 引擎内所有可预期的失败都以 FlatDBError 的子类抛出
"""
from typing import Any, Dict, Optional
from enum import Enum


class ErrorType(Enum):
    """错误类型"""
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    DUPLICATE_TABLE = "DUPLICATE_TABLE"
    DUPLICATE_COLUMN = "DUPLICATE_COLUMN"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
    ROW_NOT_FOUND = "ROW_NOT_FOUND"
    PRIMARY_KEY_IMMUTABLE = "PRIMARY_KEY_IMMUTABLE"
    PRIMARY_KEY_VIOLATION = "PRIMARY_KEY_VIOLATION"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    DELIMITER_COLLISION = "DELIMITER_COLLISION"
    CORRUPT_TABLE = "CORRUPT_TABLE"
    DATABASE_ERROR = "DATABASE_ERROR"


class FlatDBError(Exception):
    """引擎异常基类"""

    error_type = ErrorType.DATABASE_ERROR

    def __init__(self, message: str, table_name: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.table_name = table_name
        self.details = details or {}

    def __str__(self):
        return f"[{self.error_type.value}] {self.message}"


class InvalidIdentifierError(FlatDBError):
    """表名、列名或库名不符合命名规则"""
    error_type = ErrorType.INVALID_IDENTIFIER

    def __init__(self, identifier: str, kind: str = "identifier"):
        super().__init__(
            f"Invalid {kind} '{identifier}': must start with a letter and contain only letters, numbers, or underscores",
            details={'identifier': identifier, 'kind': kind},
        )
        self.identifier = identifier
        self.kind = kind


class InvalidSchemaError(FlatDBError):
    """列定义为空或主键数量不为一"""
    error_type = ErrorType.INVALID_SCHEMA


class DuplicateTableError(FlatDBError):
    error_type = ErrorType.DUPLICATE_TABLE

    def __init__(self, table_name: str):
        super().__init__(f"Table '{table_name}' already exists", table_name)


class DuplicateColumnError(FlatDBError):
    error_type = ErrorType.DUPLICATE_COLUMN

    def __init__(self, column_name: str, table_name: str = ""):
        super().__init__(f"Column name '{column_name}' already exists", table_name,
                         {'column_name': column_name})
        self.column_name = column_name


class TableNotFoundError(FlatDBError):
    error_type = ErrorType.TABLE_NOT_FOUND

    def __init__(self, table_name: str):
        super().__init__(f"Table '{table_name}' does not exist", table_name)


class ColumnNotFoundError(FlatDBError):
    error_type = ErrorType.COLUMN_NOT_FOUND

    def __init__(self, column_name: str, table_name: str = ""):
        super().__init__(f"Column '{column_name}' not found in table '{table_name}'", table_name,
                         {'column_name': column_name})
        self.column_name = column_name


class RowNotFoundError(FlatDBError):
    """按主键未找到行（查询结果为空，不属于故障）"""
    error_type = ErrorType.ROW_NOT_FOUND

    def __init__(self, key: str, table_name: str = ""):
        super().__init__(f"Primary key value '{key}' does not exist", table_name, {'key': key})
        self.key = key


class PrimaryKeyImmutableError(FlatDBError):
    error_type = ErrorType.PRIMARY_KEY_IMMUTABLE

    def __init__(self, column_name: str, table_name: str = ""):
        super().__init__(f"Primary key column '{column_name}' cannot be changed or dropped", table_name,
                         {'column_name': column_name})
        self.column_name = column_name


class PrimaryKeyViolationError(FlatDBError):
    error_type = ErrorType.PRIMARY_KEY_VIOLATION

    def __init__(self, column_name: str, value: str, table_name: str = ""):
        super().__init__(f"Primary key violation: {column_name}={value} already exists", table_name,
                         {'column_name': column_name, 'value': value})
        self.column_name = column_name
        self.value = value


class TypeMismatchError(FlatDBError):
    """字段值与列类型不匹配"""
    error_type = ErrorType.TYPE_MISMATCH

    def __init__(self, column_name: str, value: str, expected: str, table_name: str = "",
                 message: Optional[str] = None):
        super().__init__(message or f"Invalid data type for column '{column_name}': '{value}' is not {expected}",
                         table_name, {'column_name': column_name, 'value': value, 'expected': expected})
        self.column_name = column_name
        self.value = value
        self.expected = expected


class UnclassifiableValueError(TypeMismatchError):
    """字面量既不是 int 也不是 string"""

    def __init__(self, value: str, column_name: str = "", expected: str = "", table_name: str = ""):
        super().__init__(column_name, value, expected, table_name,
                         message=f"Value '{value}' is neither an integer nor an alphanumeric string")


class DelimiterCollisionError(FlatDBError):
    """字段值中包含分隔符或换行符"""
    error_type = ErrorType.DELIMITER_COLLISION

    def __init__(self, value: str, delimiter: str):
        super().__init__(f"Field value {value!r} contains the reserved delimiter {delimiter!r} or a line break",
                         details={'value': value, 'delimiter': delimiter})
        self.value = value


class CorruptTableError(FlatDBError):
    """模式行或数据行无法解析"""
    error_type = ErrorType.CORRUPT_TABLE


class DatabaseError(FlatDBError):
    """数据库目录管理相关错误"""
    error_type = ErrorType.DATABASE_ERROR
