"""
Storage 子系统：行编码与表文件管理。

模块清单：
- row_codec: 行与冒号分隔文本之间的编解码
- table_files: 模式/数据文件对的读取、追加与原子提交
"""
