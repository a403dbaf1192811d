# -*- coding: utf-8 -*-
"""
配置模块

功能：
- 加载 Exporter 配置（环境变量 / YAML）
- 验证配置取值
"""
