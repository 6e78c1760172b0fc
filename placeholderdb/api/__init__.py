"""
API 模块 - REST 接口
"""
