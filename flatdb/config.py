"""
flatdb 配置文件
集中存放存储格式、命名规则与日志相关的可调参数。
"""

# ============================================================================
# 存储配置
# ============================================================================

# 所有数据库目录的根路径
DATA_DIR = './databases'

# 行内字段分隔符（字段值中不允许出现）
FIELD_DELIMITER = ':'

# 模式文件中的主键标记
PRIMARY_KEY_MARKER = 'PK'

# 表 T 的模式文件名为 .T
SCHEMA_FILE_PREFIX = '.'

# 提交前暂存的新内容文件后缀
STAGED_FILE_SUFFIX = '.staged'

# 待完成提交的日志文件后缀（.T.journal）
JOURNAL_FILE_SUFFIX = '.journal'

# 原子替换时使用的临时文件后缀
TEMP_FILE_SUFFIX = '.tmp'

# ============================================================================
# 命名与类型配置
# ============================================================================

# 表名、列名、数据库名的合法格式
IDENTIFIER_PATTERN = r'[A-Za-z][A-Za-z0-9_]*'

# 模式文件中使用的类型名
INT_TYPE_NAME = 'int'
TEXT_TYPE_NAME = 'string'

# ============================================================================
# 日志配置
# ============================================================================

# 控制台日志级别（交互界面默认只显示警告及以上）
LOG_LEVEL = 'WARNING'

# 日志文件位置，None 表示不写文件
LOG_FILE = None
