# -*- coding: utf-8 -*-
"""
Provider 模块

功能：
- 提供上游 API 所需的凭证
"""
