# -*- coding: utf-8 -*-
"""
Prometheus Collector 模块

功能：
- 实现抓取时获取配额的 Prometheus Collector
- 暴露 Prometheus 格式的配额指标
"""

from .collector import QuotaCollector, BYTES_PER_MB

__all__ = ['QuotaCollector', 'BYTES_PER_MB']
