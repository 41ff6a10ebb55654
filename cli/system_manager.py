# system_manager.py

import os
import shutil
from typing import List, Optional

from loguru import logger

from flatdb.config import DATA_DIR
from flatdb.engine.errors import DatabaseError
from flatdb.engine.row_store import RowStore
from flatdb.engine.schema_store import validate_identifier
from flatdb.engine.table_catalog import TableCatalog


class SystemManager:
    """系统管理类，负责管理多个数据库目录的生命周期"""

    def __init__(self, base_data_dir: str = DATA_DIR):
        self.base_data_dir = base_data_dir
        self.current_db_name: Optional[str] = None
        self._catalog: Optional[TableCatalog] = None
        self._row_store: Optional[RowStore] = None

        if not os.path.exists(self.base_data_dir):
            os.makedirs(self.base_data_dir)

    def _db_path(self, db_name: str) -> str:
        return os.path.join(self.base_data_dir, db_name)

    def database_exists(self, db_name: str) -> bool:
        return bool(db_name) and os.path.isdir(self._db_path(db_name))

    def create_database(self, db_name: str):
        """创建一个新的数据库目录"""
        if not db_name:
            raise DatabaseError("You must enter a name for a database")
        validate_identifier(db_name, "database name")
        if self.database_exists(db_name):
            raise DatabaseError(f"Database '{db_name}' already exists!")
        os.makedirs(self._db_path(db_name))
        logger.info(f"数据库 '{db_name}' 已创建")

    def list_databases(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.base_data_dir)
            if os.path.isdir(self._db_path(name))
        )

    def drop_database(self, db_name: str):
        """删除一个数据库及其所有文件"""
        if not self.database_exists(db_name):
            raise DatabaseError(f"Database '{db_name}' does not exist!")
        if db_name == self.current_db_name:
            self.current_db_name = None
            self._catalog = None
            self._row_store = None
        shutil.rmtree(self._db_path(db_name))
        logger.info(f"数据库 '{db_name}' 已删除")

    def use_database(self, db_name: str):
        """切换到指定的数据库上下文"""
        if not self.database_exists(db_name):
            raise DatabaseError(f"Database '{db_name}' does not exist!")
        # 打开目录时会前滚未完成的提交
        self._catalog = TableCatalog(self._db_path(db_name))
        self._row_store = RowStore(self._catalog)
        self.current_db_name = db_name
        logger.info(f"已切换到数据库 '{db_name}'")

    def get_catalog(self) -> TableCatalog:
        if self._catalog is None:
            raise DatabaseError("No database selected. Connect to a database first.")
        return self._catalog

    def get_row_store(self) -> RowStore:
        if self._row_store is None:
            raise DatabaseError("No database selected. Connect to a database first.")
        return self._row_store
