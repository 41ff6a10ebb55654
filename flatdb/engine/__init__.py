"""
Engine 子系统：值分类、表模式、表目录与行级增删改查。

模块清单：
- errors: 异常体系与错误类型
- value_classifier: 字面量分类（int / string）
- schema_store: 模式文件的定义、读取与删列
- table_catalog: 表（模式+数据文件对）的创建、列举与删除
- row_store: 插入、查询、删除、更新
"""
