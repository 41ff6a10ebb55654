"""
表目录（TableCatalog）

职责：
- 建表：模式文件和空数据文件在一次提交中写入，中断后要么都在要么都不在
- 列出同时具有模式文件和数据文件的表
- 删表：一次提交同时删除两个文件
- 打开数据库目录时前滚未完成的提交
"""
import os
from typing import List, Optional, Sequence

from loguru import logger

from flatdb.engine.errors import DatabaseError, TableNotFoundError
from flatdb.engine.schema_store import ColumnInfo, ColumnSpec, SchemaStore, is_valid_identifier
from flatdb.storage.table_files import TableFiles


class TableCatalog:
    def __init__(self, data_dir: str) -> None:
        """
        :param data_dir: 数据库目录，一个目录对应一个数据库
        """
        if not os.path.isdir(data_dir):
            raise DatabaseError(f"Database directory '{data_dir}' does not exist")
        self.data_dir = data_dir
        self.schema_store = SchemaStore(data_dir)
        self.recover()

    def recover(self) -> List[str]:
        """前滚目录下所有残留的提交日志，返回涉及的表名。"""
        recovered = []
        for table_name in TableFiles.pending_tables(self.data_dir):
            if TableFiles(self.data_dir, table_name).recover():
                recovered.append(table_name)
        if recovered:
            logger.warning(f"数据库目录 '{self.data_dir}' 中恢复了未完成的提交: {recovered}")
        return recovered

    def create(self, table_name: str, columns: Sequence[ColumnSpec], primary_key: Optional[str] = None) -> List[ColumnInfo]:
        """创建新表，成功后模式文件和空数据文件同时存在。"""
        try:
            # 模式文件与空数据文件在同一次提交中写入
            infos = self.schema_store.define(table_name, columns, primary_key, data='')
        except BaseException:
            # 日志已写入则前滚成完整的表，否则丢弃暂存文件
            if is_valid_identifier(table_name):
                TableFiles(self.data_dir, table_name).recover()
            raise
        logger.info(f"表 '{table_name}' 创建成功，列: {[c.column_name for c in infos]}")
        return infos

    def list_tables(self) -> List[str]:
        names = []
        for entry in os.listdir(self.data_dir):
            if is_valid_identifier(entry) and TableFiles(self.data_dir, entry).exists():
                names.append(entry)
        return sorted(names)

    def exists(self, table_name: str) -> bool:
        return is_valid_identifier(table_name) and TableFiles(self.data_dir, table_name).exists()

    def open(self, table_name: str) -> TableFiles:
        """取得已存在的表的文件对，必要时先完成恢复。"""
        files = self.schema_store.files(table_name)
        files.recover()
        if not files.exists():
            raise TableNotFoundError(table_name)
        return files

    def load_schema(self, table_name: str) -> List[ColumnInfo]:
        self.open(table_name)
        return self.schema_store.load(table_name)

    def drop(self, table_name: str) -> None:
        files = self.open(table_name)
        files.commit(remove=True)
        logger.info(f"表 '{table_name}' 已删除")
