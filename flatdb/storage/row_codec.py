from typing import Iterable, List, Sequence, Tuple

from flatdb.config import FIELD_DELIMITER
from flatdb.engine.errors import CorruptTableError, DelimiterCollisionError

Row = Tuple[str, ...]


class RowCodec:
    """
    行编解码器。
    一行就是按模式列顺序排列的字段值，用分隔符拼接成一行文本；
    行内不保存列名，字段只能按位置寻址。
    """

    def __init__(self, schema: Sequence, delimiter: str = FIELD_DELIMITER, table_name: str = ""):
        self.schema = schema
        self.arity = len(schema)
        self.delimiter = delimiter
        self.table_name = table_name

    def check_field(self, value: str) -> str:
        if self.delimiter in value or '\n' in value or '\r' in value:
            raise DelimiterCollisionError(value, self.delimiter)
        return value

    def encode(self, row: Sequence[str]) -> str:
        """把一行编码为不含换行符的文本。"""
        if len(row) != self.arity:
            raise ValueError(f"Row has {len(row)} fields, schema has {self.arity} columns")
        return self.delimiter.join(self.check_field(str(value)) for value in row)

    def decode(self, line: str) -> Row:
        fields = tuple(line.rstrip('\r\n').split(self.delimiter))
        if len(fields) != self.arity:
            raise CorruptTableError(
                f"Row {line.rstrip()!r} has {len(fields)} fields, expected {self.arity}",
                self.table_name,
            )
        return fields

    def encode_rows(self, rows: Iterable[Sequence[str]]) -> str:
        """编码多行，每行以换行符结尾；用于整表重写。"""
        return ''.join(self.encode(row) + '\n' for row in rows)

    def decode_lines(self, lines: Iterable[str]) -> List[Row]:
        # 空行不是合法记录（字段值不允许为空），直接跳过
        return [self.decode(line) for line in lines if line.strip('\r\n')]
