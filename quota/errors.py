# -*- coding: utf-8 -*-
"""
配额获取异常定义

功能：
- 定义单次请求内可恢复的配额获取错误
- 由 handler 边界统一捕获并转换为通用响应
"""

from datetime import date
from typing import Optional


class QuotaFetchError(Exception):
    """配额获取失败（单次请求可恢复）"""


class UsageReportError(QuotaFetchError):
    """某个日期的 Usage Report 调用失败"""

    def __init__(self, report_date: date, message: str, status: Optional[int] = None):
        super().__init__(f"获取 {report_date.isoformat()} 的 Usage Report 失败: {message}")
        self.report_date = report_date
        self.status = status  # HTTP 状态码（非 HTTP 错误时为 None）


class NoUsageDataError(QuotaFetchError):
    """Usage Report 调用成功，但没有任何 usageReports 条目"""

    def __init__(self, report_date: date):
        super().__init__(f"{report_date.isoformat()} 的 Usage Report 没有数据")
        self.report_date = report_date


class MalformedReportError(QuotaFetchError):
    """Usage Report 中的配额参数无法解析"""


class FetchDeadlineExceeded(QuotaFetchError):
    """在探测窗口内超出整体截止时间"""
