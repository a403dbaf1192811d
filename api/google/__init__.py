# -*- coding: utf-8 -*-
"""
Google Admin SDK API 客户端

功能：
- 封装 Reports API（customerUsageReports）调用
"""
