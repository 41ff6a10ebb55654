"""
flatdb - 基于纯文本文件的极简表存储引擎

每张表由两个文件组成：隐藏的模式文件（.T）和数据文件（T），
字段之间使用冒号分隔。
"""

__version__ = '0.1.0'
