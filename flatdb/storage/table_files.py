# -*- coding: utf-8 -*-
"""
表文件管理器（TableFiles）

职责：
- 把一张表的模式文件（.T）和数据文件（T）当作一个整体管理
- 提供读取、追加以及"暂存 + 日志 + 替换"的原子提交
- 启动或打开表时根据残留的日志完成未结束的提交

提交流程：
1. 每个要改动的文件先完整写入同目录下的 <文件>.staged 并落盘
2. 以原子方式写入日志 .T.journal，记录待执行的 replace / remove 动作
3. 依次执行动作，最后删除日志
日志写入之前崩溃，旧内容保持不变；日志写入之后崩溃，由 recover() 前滚。
"""
import json
import os
import re
from typing import Dict, List

from loguru import logger

from flatdb.config import (
    IDENTIFIER_PATTERN, SCHEMA_FILE_PREFIX, STAGED_FILE_SUFFIX, JOURNAL_FILE_SUFFIX, TEMP_FILE_SUFFIX,
)

# commit() 中表示"该文件不变"的哨兵值
UNCHANGED = object()


def _write_file(path: str, content: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())


def atomic_write(path: str, content: str) -> None:
    """先写临时文件再 os.replace，保证读者只会看到旧内容或新内容。"""
    tmp_path = path + TEMP_FILE_SUFFIX
    _write_file(tmp_path, content)
    os.replace(tmp_path, path)


class TableFiles:
    """一张表的模式/数据文件对。"""

    def __init__(self, data_dir: str, table_name: str):
        self.data_dir = data_dir
        self.table_name = table_name
        self.data_path = os.path.join(data_dir, table_name)
        self.schema_path = os.path.join(data_dir, f"{SCHEMA_FILE_PREFIX}{table_name}")
        self.journal_path = self.schema_path + JOURNAL_FILE_SUFFIX

    # --- 状态 ---

    def schema_exists(self) -> bool:
        return os.path.isfile(self.schema_path)

    def data_exists(self) -> bool:
        return os.path.isfile(self.data_path)

    def exists(self) -> bool:
        """模式文件和数据文件都存在才算表存在。"""
        return self.schema_exists() and self.data_exists()

    def has_pending_journal(self) -> bool:
        return os.path.exists(self.journal_path)

    # --- 读取 ---

    def read_schema_lines(self) -> List[str]:
        with open(self.schema_path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()

    def read_data_lines(self) -> List[str]:
        with open(self.data_path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()

    # --- 写入 ---

    def append_data_line(self, line: str) -> None:
        with open(self.data_path, 'a', encoding='utf-8') as f:
            f.write(line + '\n')
            f.flush()
            os.fsync(f.fileno())

    def commit(self, schema=UNCHANGED, data=UNCHANGED, remove: bool = False) -> None:
        """
        原子地改写模式文件和/或数据文件，或删除整张表。

        :param schema: 新的模式文件全文，UNCHANGED 表示不改
        :param data: 新的数据文件全文，UNCHANGED 表示不改
        :param remove: True 时删除两个文件（忽略 schema / data）
        """
        actions: List[Dict[str, str]] = []
        if remove:
            actions.append({'action': 'remove', 'target': os.path.basename(self.data_path)})
            actions.append({'action': 'remove', 'target': os.path.basename(self.schema_path)})
        else:
            # 数据文件先于模式文件替换
            for path, content in ((self.data_path, data), (self.schema_path, schema)):
                if content is UNCHANGED:
                    continue
                staged_path = path + STAGED_FILE_SUFFIX
                _write_file(staged_path, content)
                actions.append({
                    'action': 'replace',
                    'source': os.path.basename(staged_path),
                    'target': os.path.basename(path),
                })
        if not actions:
            return
        atomic_write(self.journal_path, json.dumps({'table': self.table_name, 'actions': actions}))
        logger.debug(f"表 '{self.table_name}' 提交日志已写入: {actions}")
        self._apply(actions)
        os.remove(self.journal_path)

    def _apply(self, actions: List[Dict[str, str]]) -> None:
        # 所有动作均可重复执行
        for action in actions:
            target = os.path.join(self.data_dir, action['target'])
            if action['action'] == 'replace':
                source = os.path.join(self.data_dir, action['source'])
                if os.path.exists(source):
                    os.replace(source, target)
            elif action['action'] == 'remove':
                if os.path.exists(target):
                    os.remove(target)
            else:
                raise ValueError(f"Unknown journal action {action['action']!r}")

    # --- 恢复 ---

    def _leftover_paths(self) -> List[str]:
        return [
            self.data_path + STAGED_FILE_SUFFIX,
            self.schema_path + STAGED_FILE_SUFFIX,
            self.data_path + TEMP_FILE_SUFFIX,
            self.schema_path + TEMP_FILE_SUFFIX,
            self.journal_path + TEMP_FILE_SUFFIX,
        ]

    def recover(self) -> bool:
        """
        完成上次中断的提交。
        :return: 是否前滚了一份日志
        """
        recovered = False
        if self.has_pending_journal():
            with open(self.journal_path, 'r', encoding='utf-8') as f:
                journal = json.load(f)
            self._apply(journal.get('actions', []))
            os.remove(self.journal_path)
            recovered = True
            logger.info(f"表 '{self.table_name}' 未完成的提交已前滚")
        # 没有日志的暂存文件属于未提交的改动，丢弃
        for path in self._leftover_paths():
            if os.path.exists(path):
                os.remove(path)
                logger.debug(f"丢弃残留文件 {path}")
        return recovered

    @staticmethod
    def pending_tables(data_dir: str) -> List[str]:
        """扫描目录，返回留有提交日志的表名。"""
        names = []
        for entry in os.listdir(data_dir):
            if not (entry.startswith(SCHEMA_FILE_PREFIX) and entry.endswith(JOURNAL_FILE_SUFFIX)):
                continue
            name = entry[len(SCHEMA_FILE_PREFIX):-len(JOURNAL_FILE_SUFFIX)]
            # 表 journal 的模式文件 .journal 也符合上面的模式，剥离后不是合法表名
            if re.fullmatch(IDENTIFIER_PATTERN, name):
                names.append(name)
        return sorted(names)

