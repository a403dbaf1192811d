# -*- coding: utf-8 -*-
"""
上游 API 客户端模块
"""
