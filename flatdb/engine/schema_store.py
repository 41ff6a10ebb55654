"""
模式存储（SchemaStore）

职责：
- 建表时校验并写入列定义（列名、类型、唯一的主键标记）
- 读取列定义，按列名解析字段位置
- 删除非主键列

模式文件每行一列，格式为 name:type:marker，type 为 int 或 string，
marker 只在主键列上为 PK。行的顺序即数据文件中字段的顺序。
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from flatdb.config import FIELD_DELIMITER, IDENTIFIER_PATTERN, PRIMARY_KEY_MARKER
from flatdb.engine.errors import (
    ColumnNotFoundError, CorruptTableError, DuplicateColumnError, DuplicateTableError,
    InvalidIdentifierError, InvalidSchemaError, PrimaryKeyImmutableError, TableNotFoundError,
)
from flatdb.engine.value_classifier import ValueType
from flatdb.storage.table_files import TableFiles, UNCHANGED

_IDENTIFIER_RE = re.compile(IDENTIFIER_PATTERN)


def is_valid_identifier(name: str) -> bool:
    return bool(name) and _IDENTIFIER_RE.fullmatch(name) is not None


def validate_identifier(name: str, kind: str = "identifier") -> str:
    if not is_valid_identifier(name):
        raise InvalidIdentifierError(name, kind)
    return name


@dataclass
class ColumnInfo:
    column_name: str
    data_type: ValueType
    is_primary_key: bool = False

    def to_line(self) -> str:
        marker = PRIMARY_KEY_MARKER if self.is_primary_key else ''
        return FIELD_DELIMITER.join([self.column_name, self.data_type.value, marker])

    @staticmethod
    def from_line(line: str) -> 'ColumnInfo':
        parts = line.split(FIELD_DELIMITER)
        if len(parts) != 3:
            raise ValueError(f"Malformed schema line {line!r}")
        name, type_name, marker = parts
        if marker not in ('', PRIMARY_KEY_MARKER):
            raise ValueError(f"Unknown column marker {marker!r}")
        return ColumnInfo(name, ValueType.from_name(type_name), marker == PRIMARY_KEY_MARKER)


ColumnSpec = Union[ColumnInfo, Tuple[str, Union[ValueType, str]]]


def render_schema(columns: Sequence[ColumnInfo]) -> str:
    return ''.join(col.to_line() + '\n' for col in columns)


class SchemaStore:
    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir

    def files(self, table_name: str) -> TableFiles:
        """取表文件对；名字不合法的表不可能存在。"""
        if not is_valid_identifier(table_name):
            raise TableNotFoundError(table_name)
        return TableFiles(self.data_dir, table_name)

    def _normalize(self, columns: Sequence[ColumnSpec], primary_key: Optional[str]) -> List[ColumnInfo]:
        result = []
        for col in columns:
            if isinstance(col, ColumnInfo):
                info = ColumnInfo(col.column_name, col.data_type, col.is_primary_key)
            else:
                name, data_type = col
                if not isinstance(data_type, ValueType):
                    try:
                        data_type = ValueType.from_name(data_type)
                    except ValueError as e:
                        raise InvalidSchemaError(str(e)) from e
                info = ColumnInfo(name, data_type)
            if primary_key is not None:
                info.is_primary_key = info.column_name == primary_key
            result.append(info)
        return result

    def define(self, table_name: str, columns: Sequence[ColumnSpec], primary_key: Optional[str] = None,
               data=UNCHANGED) -> List[ColumnInfo]:
        """
        校验并写入新表的模式文件。

        :param columns: ColumnInfo 列表，或 (列名, 类型) 元组列表
        :param primary_key: 主键列名；为 None 时使用 ColumnInfo 自带的主键标志
        :param data: 若给出，数据文件与模式文件在同一次提交中写入
        :return: 写入的列定义
        """
        validate_identifier(table_name, "table name")
        files = TableFiles(self.data_dir, table_name)
        if files.schema_exists() or files.data_exists():
            raise DuplicateTableError(table_name)
        if not columns:
            raise InvalidSchemaError(f"Table '{table_name}' must have at least one column", table_name)

        infos = self._normalize(columns, primary_key)
        seen = set()
        for info in infos:
            validate_identifier(info.column_name, "column name")
            if info.column_name in seen:
                raise DuplicateColumnError(info.column_name, table_name)
            seen.add(info.column_name)

        if primary_key is not None and primary_key not in seen:
            raise InvalidSchemaError(f"Primary key '{primary_key}' is not one of the columns", table_name)
        pk_count = sum(1 for info in infos if info.is_primary_key)
        if pk_count != 1:
            raise InvalidSchemaError(f"Table '{table_name}' must have exactly one primary key, got {pk_count}",
                                     table_name)

        files.commit(schema=render_schema(infos), data=data)
        logger.debug(f"表 '{table_name}' 模式已写入: {[c.to_line() for c in infos]}")
        return infos

    def load(self, table_name: str) -> List[ColumnInfo]:
        files = self.files(table_name)
        if not files.schema_exists():
            raise TableNotFoundError(table_name)
        columns = []
        for line in files.read_schema_lines():
            if not line.strip():
                continue
            try:
                columns.append(ColumnInfo.from_line(line))
            except ValueError as e:
                raise CorruptTableError(f"Schema of table '{table_name}' is corrupted: {e}", table_name) from e
        if sum(1 for c in columns if c.is_primary_key) != 1:
            raise CorruptTableError(f"Schema of table '{table_name}' does not have exactly one primary key",
                                    table_name)
        return columns

    def primary_key(self, table_name: str) -> ColumnInfo:
        return find_primary_key(self.load(table_name))

    def column_position(self, table_name: str, column_name: str) -> int:
        return find_column(self.load(table_name), column_name, table_name)[0]

    def drop_column(self, table_name: str, column_name: str, data=UNCHANGED) -> List[ColumnInfo]:
        """
        从模式中删除一列，其余列保持原有顺序。
        data 不为 UNCHANGED 时，新的数据文件内容与新模式在同一次提交中生效。
        """
        columns = self.load(table_name)
        _, column = find_column(columns, column_name, table_name)
        if column.is_primary_key:
            raise PrimaryKeyImmutableError(column_name, table_name)
        remaining = [c for c in columns if c.column_name != column_name]
        self.files(table_name).commit(schema=render_schema(remaining), data=data)
        return remaining


def find_primary_key(columns: Sequence[ColumnInfo]) -> ColumnInfo:
    for col in columns:
        if col.is_primary_key:
            return col
    raise CorruptTableError("Schema has no primary key")


def find_column(columns: Sequence[ColumnInfo], column_name: str, table_name: str = "") -> Tuple[int, ColumnInfo]:
    for position, col in enumerate(columns):
        if col.column_name == column_name:
            return position, col
    raise ColumnNotFoundError(column_name, table_name)
