# main.py

import argparse
import sys
from typing import List, Optional

from loguru import logger

from cli.cli_interface import CLIInterface
from cli.system_manager import SystemManager
from flatdb import config
from flatdb.engine.errors import FlatDBError

# loguru 内置的日志级别
LOG_LEVELS = ('TRACE', 'DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL')


def configure_logging(level: str = config.LOG_LEVEL, log_file: Optional[str] = config.LOG_FILE):
    """重置 loguru 的输出：控制台只显示指定级别以上，可选写入日志文件。"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    if log_file:
        logger.add(log_file, level="DEBUG", encoding="utf-8")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='flatdb', description='Flat-file table store with an interactive menu')
    parser.add_argument('database', nargs='?', help='connect to this database on startup')
    parser.add_argument('--data-dir', default=config.DATA_DIR, help='directory holding all databases')
    parser.add_argument('--log-level', default=config.LOG_LEVEL, type=str.upper, choices=LOG_LEVELS,
                        help='console log level')
    parser.add_argument('--log-file', default=config.LOG_FILE, help='also write DEBUG logs to this file')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """主函数，启动数据库的交互式菜单。"""
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    system_manager = SystemManager(base_data_dir=args.data_dir)
    cli = CLIInterface(system_manager=system_manager)
    if args.database:
        try:
            system_manager.use_database(args.database)
        except FlatDBError as e:
            cli.log_fail(e.message)
            return 1
        try:
            cli.table_menu()
        except (KeyboardInterrupt, EOFError):
            cli.console.print("\nGoodbye!")
        return 0

    cli.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
