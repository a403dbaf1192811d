# -*- coding: utf-8 -*-
"""
Google Admin SDK Reports API 客户端模块

功能：
- 封装 customerUsageReports.get 调用
- 为每次调用设置 socket 超时
- 将底层异常统一转换为 UsageReportError
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Iterable, Optional

import httplib2
import google_auth_httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from quota.errors import UsageReportError

logger = logging.getLogger(__name__)

REPORTS_SCOPE = 'https://www.googleapis.com/auth/admin.reports.usage.readonly'


class UsageReportSource(ABC):
    """
    Usage Report 数据源接口

    功能：
    - 按日期返回原始的 Usage Report 响应
    - 调用失败时抛出 UsageReportError
    """

    @abstractmethod
    def get_customer_usage(self, report_date: date) -> Dict[str, Any]:
        """
        获取指定日期的客户级 Usage Report

        Args:
            report_date: 报告日期

        Returns:
            API 原始响应字典（包含 usageReports 列表）
        """
        pass


class UsageReportClient(UsageReportSource):
    """
    Reports API 客户端

    功能：
    - 调用 customerUsageReports.get 获取组织级用量
    - httplib2 不是线程安全的，每次调用创建新的 Http 对象
    """

    def __init__(self, credentials, timeout: float = 10.0, parameters: Optional[Iterable[str]] = None):
        """
        初始化 Reports API 客户端

        Args:
            credentials: google-auth 凭证
            timeout: 单次 HTTP 调用的 socket 超时（秒）
            parameters: 只请求这些参数（如 'accounts:total_quota_in_mb'），None 表示全部
        """
        self.credentials = credentials
        self.timeout = timeout
        self.parameters = ','.join(parameters) if parameters else None
        try:
            self.service = build('admin', 'reports_v1', credentials=credentials, cache_discovery=False)
            logger.debug(f"Reports API 客户端初始化成功，超时: {timeout}s")
        except Exception as e:
            logger.error(f"初始化 Reports API 客户端失败: {e}")
            raise

    def _new_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """为单次调用创建带超时的授权 Http 对象"""
        return google_auth_httplib2.AuthorizedHttp(
            self.credentials,
            http=httplib2.Http(timeout=self.timeout)
        )

    def get_customer_usage(self, report_date: date) -> Dict[str, Any]:
        """
        获取指定日期的客户级 Usage Report

        Args:
            report_date: 报告日期

        Returns:
            API 原始响应字典

        Raises:
            UsageReportError: HTTP 错误、认证错误或网络错误
        """
        day = report_date.isoformat()
        kwargs = {'date': day}
        if self.parameters:
            kwargs['parameters'] = self.parameters

        try:
            logger.debug(f"调用 customerUsageReports.get: date={day}")
            request = self.service.customerUsageReports().get(**kwargs)
            return request.execute(http=self._new_http())
        except HttpError as e:
            status = getattr(e.resp, 'status', None)
            logger.debug(f"Reports API 返回错误: date={day}, status={status}, error={e}")
            raise UsageReportError(report_date, f"HTTP {status}", status=status) from e
        except GoogleAuthError as e:
            logger.warning(f"Reports API 认证失败: date={day}, error={e}")
            raise UsageReportError(report_date, f"认证失败: {e}") from e
        except (httplib2.HttpLib2Error, OSError) as e:
            logger.warning(f"Reports API 网络错误: date={day}, error={e}")
            raise UsageReportError(report_date, f"网络错误: {e}") from e
