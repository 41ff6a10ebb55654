# -*- coding: utf-8 -*-
"""
CLI接口模块
封装菜单式交互逻辑和用户界面
"""

from typing import Callable, Dict, List, Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.system_manager import SystemManager
from flatdb.engine.errors import (
    ColumnNotFoundError, FlatDBError, PrimaryKeyImmutableError,
    PrimaryKeyViolationError, TypeMismatchError,
)
from flatdb.engine.schema_store import ColumnInfo, find_primary_key, is_valid_identifier
from flatdb.engine.value_classifier import ValueType, try_classify

EXIT_WORDS = ('exit', 'quit', 'q')

TYPE_CHOICES = {'1': ValueType.INT, '2': ValueType.TEXT}


class CLIInterface:
    """命令行接口类"""

    def __init__(self, system_manager: SystemManager, console: Optional[Console] = None,
                 input_func: Optional[Callable[[str], str]] = None):
        self.system_manager = system_manager
        self.console = console or Console()
        # 测试时注入脚本化的输入函数
        self._input = input_func or (lambda prompt: self.console.input(escape(prompt)))

    # --- 输出辅助 ---

    def log_fail(self, message: str):
        self.console.print(f"[red]{escape(message)}[/red]")

    def log_pass(self, message: str):
        self.console.print(f"[green]{escape(message)}[/green]")

    def log_info(self, message: str):
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def print_header(self, title: str):
        self.console.print("[blue]" + "=" * 38 + "[/blue]")
        self.console.print(f"[blue]{escape(title.center(38))}[/blue]")
        self.console.print("[blue]" + "=" * 38 + "[/blue]")

    def print_welcome(self):
        self.print_header("Flat File DBMS")
        self.console.print("输入菜单编号进行操作，Ctrl-C 退出。")

    def ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def choose(self, options: List[str]) -> str:
        for i, option in enumerate(options, 1):
            self.console.print(f"  {i}. {option}")
        return self.ask("Enter your choice: ")

    def print_rows(self, headers: List[str], rows: List[tuple]):
        """以表格形式显示查询结果（使用Rich）"""
        if not rows:
            self.console.print("[bold yellow]查询结果: 无数据[/bold yellow]")
            return
        table = Table(show_header=True, header_style="bold cyan")
        for name in headers:
            table.add_column(name)
        for row in rows:
            table.add_row(*(escape(value) for value in row))
        self.console.print(table)
        self.console.print(f"[bold green]({len(rows)} rows)[/bold green]")

    # --- 主循环 ---

    def run(self):
        """运行CLI主循环"""
        self.print_welcome()
        while True:
            try:
                if not self.main_menu():
                    break
            except (KeyboardInterrupt, EOFError):
                self.console.print("\nGoodbye!")
                break

    def main_menu(self) -> bool:
        """显示一次数据库菜单并执行选择；返回 False 表示退出。"""
        self.print_header("Flat File DBMS")
        choice = self.choose(["Create Database", "List Databases", "Connect To Database",
                             "Drop Database", "Exit"])
        actions: Dict[str, Callable[[], None]] = {
            '1': self.create_database,
            '2': self.list_databases,
            '3': self.connect_database,
            '4': self.drop_database,
        }
        if choice == '5' or choice.lower() in EXIT_WORDS:
            self.log_pass("Goodbye!")
            return False
        self._dispatch(actions, choice)
        return True

    def table_menu(self):
        """已连接数据库后的表操作菜单"""
        actions: Dict[str, Callable[[], None]] = {
            '1': self.create_table,
            '2': self.list_tables,
            '3': self.drop_table,
            '4': self.insert_into_table,
            '5': self.select_from_table,
            '6': self.delete_from_table,
            '7': self.update_table,
        }
        while True:
            self.print_header(f"Tables Management [{self.system_manager.current_db_name}]")
            choice = self.choose(["Create Table", "List Tables", "Drop Table", "Insert Into Table",
                                 "Select From Table", "Delete From Table", "Update Table", "Back"])
            if choice == '8' or choice.lower() in EXIT_WORDS:
                return
            self._dispatch(actions, choice)

    def _dispatch(self, actions: Dict[str, Callable[[], None]], choice: str):
        action = actions.get(choice)
        if action is None:
            self.log_fail("Invalid option")
            return
        try:
            action()
        except FlatDBError as e:
            # 结构性错误（表/列不存在等）直接中止当前操作
            self.log_fail(e.message)
        except EOFError:
            raise
        except Exception as e:
            logger.exception(f"执行菜单项 {choice} 时发生错误")
            self.log_fail(f"System error: {e}")

    # --- 数据库操作 ---

    def create_database(self):
        db_name = self.ask("Enter database name: ")
        self.system_manager.create_database(db_name)
        self.log_pass(f"Database '{db_name}' created successfully!")

    def list_databases(self):
        names = self.system_manager.list_databases()
        if not names:
            self.log_fail("No databases found!")
            return
        self.log_info("Available Databases:")
        for name in names:
            self.console.print(escape(name))

    def connect_database(self):
        db_name = self.ask("Enter database name to connect: ")
        self.system_manager.use_database(db_name)
        self.log_pass(f"Connected to database '{db_name}'")
        self.table_menu()

    def drop_database(self):
        db_name = self.ask("Enter database name to drop: ")
        self.system_manager.drop_database(db_name)
        self.log_pass(f"Database '{db_name}' dropped successfully!")

    # --- 表操作 ---

    def _ask_table(self, prompt: str) -> str:
        """询问表名；表不存在时抛出 TableNotFoundError 终止操作。"""
        table_name = self.ask(prompt)
        self.system_manager.get_catalog().open(table_name)
        return table_name

    def _columns(self, table_name: str) -> List[ColumnInfo]:
        return self.system_manager.get_catalog().load_schema(table_name)

    def create_table(self):
        catalog = self.system_manager.get_catalog()
        while True:
            table_name = self.ask("Enter table name: ")
            if is_valid_identifier(table_name):
                break
            self.log_fail("Invalid table name! Must start with a letter and contain only letters, numbers, or underscores")
        if catalog.exists(table_name):
            self.log_fail("Table already exists!")
            return

        while True:
            col_count = self.ask("Enter number of columns: ")
            if try_classify(col_count) == ValueType.INT and int(col_count) > 0:
                col_count = int(col_count)
                break
            self.log_fail("Please enter a valid positive integer!")

        col_names: List[str] = []
        for i in range(1, col_count + 1):
            while True:
                col_name = self.ask(f"Enter column {i} name: ")
                if not is_valid_identifier(col_name):
                    self.log_fail("Invalid column name! Must start with a letter and contain only letters, numbers, or underscores")
                    continue
                if col_name in col_names:
                    self.log_fail(f"Column name '{col_name}' already exists!")
                    continue
                col_names.append(col_name)
                break

        self.console.print("\nSelect Primary Key:")
        for i, col_name in enumerate(col_names, 1):
            self.console.print(f"  {i}) {escape(col_name)}")
        while True:
            pk_num = self.ask(f"Enter choice [1-{col_count}]: ")
            if try_classify(pk_num) == ValueType.INT and 1 <= int(pk_num) <= col_count:
                primary_key = col_names[int(pk_num) - 1]
                break
            self.log_fail("Invalid choice!")

        columns = []
        for col_name in col_names:
            self.console.print(f"\nSelect type for column '{escape(col_name)}':")
            self.console.print("  1) integer")
            self.console.print("  2) string")
            while True:
                type_choice = self.ask("Enter choice [1-2]: ")
                if type_choice in TYPE_CHOICES:
                    columns.append((col_name, TYPE_CHOICES[type_choice]))
                    break
                self.log_fail("Invalid choice!")

        # 所有输入收集完毕后才落盘
        catalog.create(table_name, columns, primary_key=primary_key)
        self.log_pass(f"Table '{table_name}' created successfully!")

    def list_tables(self):
        names = self.system_manager.get_catalog().list_tables()
        if not names:
            self.log_fail("No Tables found!")
            return
        self.log_info("Available Tables:")
        for name in names:
            self.console.print(escape(name))

    def drop_table(self):
        table_name = self.ask("Enter table name to drop: ")
        self.system_manager.get_catalog().drop(table_name)
        self.log_pass(f"Table '{table_name}' dropped successfully!")

    def insert_into_table(self):
        table_name = self._ask_table("Enter table name to insert: ")
        session = self.system_manager.get_row_store().begin_insert(table_name)
        self.console.print("The table columns are: " + escape(" ".join(c.column_name for c in session.columns)))
        try:
            while session.next_column is not None:
                column = session.next_column
                marker = "PK" if column.is_primary_key else ""
                value = self.ask(f"Enter the Column {column.column_name} value [{column.data_type.value}] {marker}: ")
                try:
                    session.accept(value)
                except PrimaryKeyViolationError:
                    self.log_fail("Primary key violation")
                    continue
                except TypeMismatchError:
                    self.log_fail(f"Invalid data type. Enter {column.data_type.value} type")
                    continue
                self.log_pass(f"{column.column_name} has been recorded")
        except (KeyboardInterrupt, EOFError):
            # 中途放弃时不写入任何字段
            session.discard()
            self.log_fail("Insert cancelled, nothing was written")
            raise
        session.commit()
        self.log_pass("Row inserted successfully!")

    def select_from_table(self):
        table_name = self._ask_table("Enter table name to select: ")
        row_store = self.system_manager.get_row_store()
        while True:
            choice = self.choose(["Select All", "Select specific row", "Select specific column", "Exit"])
            headers = [c.column_name for c in self._columns(table_name)]
            if choice == '1':
                self.print_rows(headers, row_store.select_all(table_name))
            elif choice == '2':
                pk = self.ask("Where PK is ")
                row = row_store.select_by_key(table_name, pk)
                if row is None:
                    self.log_info(f"NO DATA FOUND FOR PK {pk}")
                else:
                    self.print_rows(headers, [row])
            elif choice == '3':
                self.console.print(escape(":".join(headers)))
                column = self.ask("What column do you need: ")
                try:
                    values = row_store.select_column(table_name, column)
                except ColumnNotFoundError:
                    self.log_fail("Column not found")
                    continue
                self.print_rows([column], [(value,) for value in values])
            elif choice == '4' or choice.lower() in EXIT_WORDS:
                return
            else:
                self.log_fail("Invalid option")

    def delete_from_table(self):
        table_name = self._ask_table("Enter table name to delete from: ")
        row_store = self.system_manager.get_row_store()
        while True:
            choice = self.choose(["Delete All", "Delete specific row", "Delete specific column", "Exit"])
            if choice == '1':
                count = row_store.delete_all(table_name)
                self.log_pass(f"All Data Deleted ({count} rows)")
            elif choice == '2':
                pk = self.ask("Where PK is ")
                if row_store.delete_by_key(table_name, pk):
                    self.log_pass(f"Row with primary key {pk} deleted")
                else:
                    self.log_info(f"NO DATA FOUND FOR PK {pk}")
            elif choice == '3':
                headers = [c.column_name for c in self._columns(table_name)]
                self.console.print(escape(":".join(headers)))
                column = self.ask("What column do you need to delete: ")
                if not column:
                    self.log_fail("Enter valid column name")
                    continue
                try:
                    row_store.delete_column(table_name, column)
                except ColumnNotFoundError:
                    self.log_fail("Column not found")
                    continue
                except PrimaryKeyImmutableError:
                    self.log_fail("You can't drop PK Column")
                    continue
                self.log_pass(f"The column {column} deleted")
            elif choice == '4' or choice.lower() in EXIT_WORDS:
                return
            else:
                self.log_fail("Invalid option")

    def update_table(self):
        table_name = self._ask_table("Enter table name to update: ")
        row_store = self.system_manager.get_row_store()
        columns = self._columns(table_name)
        col_names = [c.column_name for c in columns]
        pk_name = find_primary_key(columns).column_name
        self.log_pass("The table columns are: " + ":".join(col_names))

        key = self.ask(f"Enter [column {pk_name} [PK]] value for the row you want to update: ")
        row = row_store.select_by_key(table_name, key)
        if row is None:
            self.log_fail("Primary key value does not exist")
            return

        while True:
            column = self.ask("PRESS EXIT || which column you want to update: ")
            if column.lower() in EXIT_WORDS:
                return
            if column not in col_names:
                self.log_fail("Invalid column name")
                continue
            if column == pk_name:
                self.log_fail("Can't update the Primary key")
                continue
            position = col_names.index(column)
            data_type = columns[position].data_type.value
            self.console.print(f"The old value is: {escape(row[position])}")
            while True:
                new_value = self.ask(f"The new value is (make sure to enter [{data_type}] data): ")
                try:
                    row = row_store.update(table_name, key, column, new_value)
                except TypeMismatchError:
                    self.log_fail("Wrong data type")
                    continue
                self.log_pass(f"Column {column} updated")
                break
