# -*- coding: utf-8 -*-
"""
HTTP 端点模块

功能：
- 配额状态页 Handler
- 基于共享 token 的访问控制
"""

from .access_gate import AccessGate
from .stats_page import StatsPageHandler, StatsView

__all__ = ['AccessGate', 'StatsPageHandler', 'StatsView']
