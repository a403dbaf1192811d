# -*- coding: utf-8 -*-
"""
存储配额模块

功能：
- 探测最近可用的 Usage Report 日期
- 提取总配额 / 已用配额
"""
