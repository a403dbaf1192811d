# -*- coding: utf-8 -*-
"""
配额状态页模块

功能：
- 每次请求获取一次配额
- 将 MB 换算为 TB（保留 3 位小数）并通过 Jinja2 模板渲染
- 获取失败、模板解析失败、模板渲染失败都返回 500，细节只写日志
"""

import math
import logging
from dataclasses import dataclass

from jinja2 import Environment, TemplateError, TemplateSyntaxError

from quota.errors import QuotaFetchError
from quota.fetcher import QuotaFetcher, QuotaSnapshot

logger = logging.getLogger(__name__)

# MB -> TB（二进制约定，1 TB = 1048576 MB）
MB_PER_TB = 1048576

HTML_CONTENT_TYPE = 'text/html; charset=utf-8'
TEXT_CONTENT_TYPE = 'text/plain; charset=utf-8'


@dataclass(frozen=True)
class StatsView:
    """状态页展示数据"""
    date: str               # 报告日期 YYYY-MM-DD
    total_quota: str        # 总配额（TB，3 位小数）
    used_quota: str         # 已用配额（TB，3 位小数）
    percentage_used: float  # 使用百分比（总配额为 0 时为 NaN）
    has_percentage: bool    # 百分比是否有效（模板据此决定是否显示进度条）

    @classmethod
    def from_snapshot(cls, snapshot: QuotaSnapshot) -> 'StatsView':
        percentage = snapshot.percentage_used
        return cls(
            date=snapshot.report_date.isoformat(),
            total_quota=f"{snapshot.total_quota_mb / MB_PER_TB:.3f}",
            used_quota=f"{snapshot.used_quota_mb / MB_PER_TB:.3f}",
            percentage_used=percentage,
            has_percentage=not math.isnan(percentage)
        )


class StatsPageHandler:
    """
    状态页 Handler（Flask view）

    功能：
    - 调用 QuotaFetcher 获取配额
    - 使用模板渲染 StatsView
    """

    def __init__(self, fetcher: QuotaFetcher, template_source: str):
        """
        初始化状态页 Handler

        Args:
            fetcher: 配额获取器
            template_source: Jinja2 模板内容
        """
        self.fetcher = fetcher
        self.template_source = template_source
        self.environment = Environment(autoescape=True)

    def __call__(self):
        try:
            snapshot = self.fetcher.fetch()
        except QuotaFetchError as e:
            logger.error(f"[stats] 配额获取失败: {e}")
            return self._error("Failed to fetch quota stats")
        except Exception as e:
            logger.error(f"[stats] 配额获取出现未知错误: {e}", exc_info=True)
            return self._error("Failed to fetch quota stats")

        return self.render(StatsView.from_snapshot(snapshot))

    def render(self, stats: StatsView):
        """渲染状态页"""
        try:
            template = self.environment.from_string(self.template_source)
        except TemplateSyntaxError as e:
            logger.error(f"[stats] 模板解析失败: {e}")
            return self._error("Failed to parse template")

        try:
            body = template.render(stats=stats)
        except TemplateError as e:
            logger.error(f"[stats] 模板渲染失败: {e}")
            return self._error("Failed to render template")
        except Exception as e:
            logger.error(f"[stats] 模板渲染出现未知错误: {e}", exc_info=True)
            return self._error("Failed to render template")

        return body, 200, {'Content-Type': HTML_CONTENT_TYPE}

    @staticmethod
    def _error(message: str):
        return f"{message}\n", 500, {'Content-Type': TEXT_CONTENT_TYPE}
