"""
fauxapi 公共模块

包含异常定义、结果类型和配置选项
"""
