# -*- coding: utf-8 -*-
"""
存储配额获取模块

功能：
- 从最近的可用日期获取 Usage Report（报告有数天延迟，需要向前探测）
- 提取总配额和已用配额（单位 MB）
- 每次调用都重新请求上游，不做任何缓存
"""

import time
import math
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from api.google.reports import UsageReportSource
from quota.errors import (
    QuotaFetchError,
    UsageReportError,
    NoUsageDataError,
    MalformedReportError,
    FetchDeadlineExceeded,
)

logger = logging.getLogger(__name__)

# 最多探测的日期数量（从昨天开始向前）
MAX_PROBE_DAYS = 5

TOTAL_QUOTA_PARAMETER = 'accounts:total_quota_in_mb'
USED_QUOTA_PARAMETER = 'accounts:used_quota_in_mb'
QUOTA_PARAMETERS = (TOTAL_QUOTA_PARAMETER, USED_QUOTA_PARAMETER)


@dataclass(frozen=True)
class QuotaSnapshot:
    """单次获取的配额快照"""
    report_date: date                               # 报告日期（UTC）
    total_quota_mb: int                             # 总配额（MB）
    used_quota_mb: int                              # 已用配额（MB）
    fetched_at: float = field(default=0.0, compare=False)  # 获取时间（Unix 秒）

    @property
    def percentage_used(self) -> float:
        """使用百分比，总配额为 0 时返回 NaN"""
        if self.total_quota_mb == 0:
            return math.nan
        return self.used_quota_mb / self.total_quota_mb * 100.0


class QuotaFetcher:
    """
    配额获取器

    功能：
    - 从昨天开始逐日向前探测，最多 MAX_PROBE_DAYS 天
    - 第一个调用成功的日期即为数据来源
    - 所有日期都失败时抛出最后一个错误
    """

    def __init__(
        self,
        report_source: UsageReportSource,
        max_probe_days: int = MAX_PROBE_DAYS,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic
    ):
        """
        初始化配额获取器

        Args:
            report_source: Usage Report 数据源
            max_probe_days: 最多探测的日期数量
            deadline: 单次 fetch 的整体截止时间（秒），None 表示不限制
            clock: 当前 Unix 时间（用于计算"昨天"和 fetched_at）
            monotonic: 单调时钟（用于截止时间判断）
        """
        self.report_source = report_source
        self.max_probe_days = max_probe_days
        self.deadline = deadline
        self._clock = clock
        self._monotonic = monotonic

    def candidate_dates(self, now: float) -> List[date]:
        """返回待探测的日期列表：昨天、前天……"""
        today = datetime.fromtimestamp(now, tz=timezone.utc).date()
        return [today - timedelta(days=offset) for offset in range(1, self.max_probe_days + 1)]

    def fetch(self) -> QuotaSnapshot:
        """
        获取最近可用日期的配额快照

        Returns:
            QuotaSnapshot 对象

        Raises:
            UsageReportError: 所有候选日期都调用失败（最后一个错误）
            NoUsageDataError: 调用成功但报告为空
            MalformedReportError: 配额参数无法解析
            FetchDeadlineExceeded: 超出整体截止时间
        """
        now = self._clock()
        started = self._monotonic()
        last_error: Optional[UsageReportError] = None

        for attempt, report_date in enumerate(self.candidate_dates(now), start=1):
            if self.deadline is not None and self._monotonic() - started >= self.deadline:
                raise FetchDeadlineExceeded(
                    f"探测 {attempt - 1} 个日期后超出截止时间 {self.deadline}s"
                ) from last_error

            try:
                response = self.report_source.get_customer_usage(report_date)
            except UsageReportError as e:
                logger.debug(f"第 {attempt}/{self.max_probe_days} 次探测失败: {e}")
                last_error = e
                continue

            logger.debug(f"第 {attempt} 次探测成功: date={report_date.isoformat()}")
            total_mb, used_mb = self._extract_quota(report_date, response)
            return QuotaSnapshot(
                report_date=report_date,
                total_quota_mb=total_mb,
                used_quota_mb=used_mb,
                fetched_at=now
            )

        if last_error is None:
            raise QuotaFetchError("没有可探测的日期")
        logger.warning(f"连续 {self.max_probe_days} 天的 Usage Report 均不可用")
        raise last_error

    def _extract_quota(self, report_date: date, response: Dict[str, Any]) -> Tuple[int, int]:
        """
        从 Usage Report 响应中提取总配额和已用配额

        Returns:
            (total_quota_mb, used_quota_mb) 元组
        """
        reports = response.get('usageReports') or []
        if not reports:
            raise NoUsageDataError(report_date)

        values = {name: 0 for name in QUOTA_PARAMETERS}
        found = set()
        for param in reports[0].get('parameters', []):
            name = param.get('name')
            if name not in values:
                continue
            try:
                # intValue 在 JSON 中是字符串形式的 int64
                values[name] = int(param.get('intValue', 0))
            except (TypeError, ValueError) as e:
                raise MalformedReportError(
                    f"参数 {name} 的值无法解析: {param.get('intValue')!r}"
                ) from e
            found.add(name)

        missing = [name for name in QUOTA_PARAMETERS if name not in found]
        if missing:
            logger.warning(f"{report_date.isoformat()} 的 Usage Report 缺少参数 {missing}，按 0 处理")

        return values[TOTAL_QUOTA_PARAMETER], values[USED_QUOTA_PARAMETER]
