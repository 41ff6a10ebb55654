# -*- coding: utf-8 -*-
"""
行存储（RowStore）

职责：
- 插入：逐字段做类型校验与主键唯一性检查，全部通过后追加一行
- 查询：全表、按主键、按列
- 删除：清空、按主键删行、删除非主键列
- 更新：按主键定位行，按列位置替换单个字段

行一律先解码为字段元组，再按字段位置比较；不对原始文本做模式匹配。
所有整表改写都经过 _rewrite：解码全部行 -> 变换 -> 重新编码 -> 原子提交。
"""
from typing import Callable, List, Optional, Sequence

from loguru import logger

from flatdb.engine.errors import (
    PrimaryKeyImmutableError, PrimaryKeyViolationError, RowNotFoundError,
    TypeMismatchError, UnclassifiableValueError,
)
from flatdb.engine.schema_store import ColumnInfo, find_column, find_primary_key
from flatdb.engine.table_catalog import TableCatalog
from flatdb.engine.value_classifier import accepts, try_classify
from flatdb.storage.row_codec import Row, RowCodec
from flatdb.storage.table_files import TableFiles


class InsertSession:
    """
    交互式插入会话。
    按列顺序逐个接收字段值；某个字段校验失败只影响该字段，已接受的字段保留。
    只有 commit() 才会写入数据文件，discard() 或中途放弃都不会留下半行数据。
    """

    def __init__(self, row_store: 'RowStore', table_name: str, columns: List[ColumnInfo], existing_keys: set):
        self.row_store = row_store
        self.table_name = table_name
        self.columns = columns
        self.values: List[str] = []
        self._existing_keys = existing_keys
        self.closed = False

    @property
    def next_column(self) -> Optional[ColumnInfo]:
        if self.closed or len(self.values) >= len(self.columns):
            return None
        return self.columns[len(self.values)]

    @property
    def is_complete(self) -> bool:
        return len(self.values) == len(self.columns)

    def accept(self, value: str) -> str:
        """校验并接受下一个字段值；失败时抛出 TypeMismatchError / PrimaryKeyViolationError。"""
        column = self.next_column
        if column is None:
            raise ValueError(f"No more columns to fill for table '{self.table_name}'")
        self.row_store.check_value(self.table_name, column, value)
        if column.is_primary_key and value in self._existing_keys:
            raise PrimaryKeyViolationError(column.column_name, value, self.table_name)
        self.values.append(value)
        return value

    def commit(self) -> Row:
        if self.closed:
            raise ValueError("Insert session is already closed")
        if not self.is_complete:
            raise ValueError(f"Only {len(self.values)} of {len(self.columns)} fields collected")
        row = self.row_store._append(self.table_name, self.columns, tuple(self.values))
        self.closed = True
        return row

    def discard(self) -> None:
        self.values = []
        self.closed = True


class RowStore:
    def __init__(self, catalog: TableCatalog) -> None:
        self.catalog = catalog
        self.schema_store = catalog.schema_store

    # --- 内部辅助 ---

    def _open(self, table_name: str):
        files = self.catalog.open(table_name)
        columns = self.schema_store.load(table_name)
        return files, columns, RowCodec(columns, table_name=table_name)

    @staticmethod
    def _read_rows(files: TableFiles, codec: RowCodec) -> List[Row]:
        return codec.decode_lines(files.read_data_lines())

    def _rewrite(
        self,
        table_name: str,
        transform: Callable[[List[Row]], List[Row]],
        out_columns: Optional[List[ColumnInfo]] = None,
        commit: Optional[Callable[[str], None]] = None,
    ) -> List[Row]:
        """
        整表改写：解码全部行，交给 transform 变换，重新编码后原子替换数据文件。
        transform 抛出的异常会中止改写，文件保持原样。

        :param out_columns: 变换后行对应的列（删列时与原模式不同）
        :param commit: 自定义提交动作，缺省只替换数据文件
        """
        files, columns, codec = self._open(table_name)
        new_rows = transform(self._read_rows(files, codec))
        out_codec = RowCodec(out_columns if out_columns is not None else columns, table_name=table_name)
        content = out_codec.encode_rows(new_rows)
        if commit is None:
            files.commit(data=content)
        else:
            commit(content)
        return new_rows

    def check_value(self, table_name: str, column: ColumnInfo, value: str) -> None:
        """int 列只接受 int；string 列接受 string 和 int。"""
        if try_classify(value) is None:
            raise UnclassifiableValueError(value, column.column_name, column.data_type.value, table_name)
        if not accepts(column.data_type, value):
            raise TypeMismatchError(column.column_name, value, column.data_type.value, table_name)

    def _append(self, table_name: str, columns: List[ColumnInfo], row: Row) -> Row:
        files, current_columns, codec = self._open(table_name)
        if current_columns != columns:
            raise ValueError(f"Schema of table '{table_name}' changed during insert")
        pk_position = columns.index(find_primary_key(columns))
        for existing in self._read_rows(files, codec):
            if existing[pk_position] == row[pk_position]:
                raise PrimaryKeyViolationError(columns[pk_position].column_name, row[pk_position], table_name)
        files.append_data_line(codec.encode(row))
        logger.info(f"表 '{table_name}' 插入一行，主键 {row[pk_position]}")
        return row

    # --- 插入 ---

    def begin_insert(self, table_name: str) -> InsertSession:
        files, columns, codec = self._open(table_name)
        pk_position = columns.index(find_primary_key(columns))
        existing_keys = {row[pk_position] for row in self._read_rows(files, codec)}
        return InsertSession(self, table_name, columns, existing_keys)

    def insert(self, table_name: str, values: Sequence[str]) -> Row:
        """非交互插入：所有字段一次给出，任一字段不合法则什么都不写。"""
        session = self.begin_insert(table_name)
        if len(values) != len(session.columns):
            raise ValueError(f"Table '{table_name}' has {len(session.columns)} columns, got {len(values)} values")
        for value in values:
            session.accept(value)
        return session.commit()

    # --- 查询 ---

    def select_all(self, table_name: str) -> List[Row]:
        """按存储（追加）顺序返回所有行。"""
        files, _, codec = self._open(table_name)
        return self._read_rows(files, codec)

    def select_by_key(self, table_name: str, key: str) -> Optional[Row]:
        """返回主键字段等于 key 的行；没有时返回 None。"""
        files, columns, codec = self._open(table_name)
        pk_position = columns.index(find_primary_key(columns))
        for row in self._read_rows(files, codec):
            if row[pk_position] == key:
                return row
        return None

    def select_column(self, table_name: str, column_name: str) -> List[str]:
        files, columns, codec = self._open(table_name)
        position, _ = find_column(columns, column_name, table_name)
        return [row[position] for row in self._read_rows(files, codec)]

    def row_count(self, table_name: str) -> int:
        return len(self.select_all(table_name))

    # --- 删除 ---

    def delete_all(self, table_name: str) -> int:
        files, _, codec = self._open(table_name)
        count = len(self._read_rows(files, codec))
        files.commit(data='')
        logger.info(f"表 '{table_name}' 已清空，删除 {count} 行")
        return count

    def delete_by_key(self, table_name: str, key: str) -> int:
        """删除主键字段等于 key 的所有行，返回删除行数。"""
        columns = self.catalog.load_schema(table_name)
        pk_position = columns.index(find_primary_key(columns))
        removed = []

        def transform(rows: List[Row]) -> List[Row]:
            kept = []
            for row in rows:
                (removed if row[pk_position] == key else kept).append(row)
            return kept

        self._rewrite(table_name, transform)
        logger.info(f"表 '{table_name}' 删除主键为 {key} 的 {len(removed)} 行")
        return len(removed)

    def delete_column(self, table_name: str, column_name: str) -> int:
        """
        删除非主键列：每行去掉该位置的字段，并在同一次提交中更新模式文件。
        :return: 改写的行数
        """
        columns = self.catalog.load_schema(table_name)
        position, column = find_column(columns, column_name, table_name)
        if column.is_primary_key:
            raise PrimaryKeyImmutableError(column_name, table_name)
        remaining = columns[:position] + columns[position + 1:]

        rows = self._rewrite(
            table_name,
            lambda rows: [row[:position] + row[position + 1:] for row in rows],
            out_columns=remaining,
            commit=lambda content: self.schema_store.drop_column(table_name, column_name, data=content),
        )
        logger.info(f"表 '{table_name}' 删除列 '{column_name}'，改写 {len(rows)} 行")
        return len(rows)

    # --- 更新 ---

    def update(self, table_name: str, key: str, column_name: str, new_value: str) -> Row:
        """
        把主键为 key 的行中 column_name 字段改为 new_value。
        按行位置和字段位置替换，其它行、其它字段保持不变。
        """
        columns = self.catalog.load_schema(table_name)
        pk_column = find_primary_key(columns)
        pk_position = columns.index(pk_column)
        updated: List[Row] = []

        def transform(rows: List[Row]) -> List[Row]:
            for index, row in enumerate(rows):
                if row[pk_position] == key:
                    break
            else:
                raise RowNotFoundError(key, table_name)
            if column_name == pk_column.column_name:
                raise PrimaryKeyImmutableError(column_name, table_name)
            position, column = find_column(columns, column_name, table_name)
            self.check_value(table_name, column, new_value)
            new_row = row[:position] + (new_value,) + row[position + 1:]
            updated.append(new_row)
            return rows[:index] + [new_row] + rows[index + 1:]

        self._rewrite(table_name, transform)
        logger.info(f"表 '{table_name}' 主键 {key} 的列 '{column_name}' 已更新")
        return updated[0]
