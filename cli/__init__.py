"""
CLI 子系统：数据库目录管理与菜单式交互界面。
"""
