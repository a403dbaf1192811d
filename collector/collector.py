# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 每次抓取时调用 QuotaFetcher 获取最新配额
- 以字节为单位暴露总配额 / 已用配额
- 上游失败时只丢弃样本，指标描述仍然完整输出
"""

import time
import logging
from typing import Iterator, Optional, Tuple

from prometheus_client import Counter, Histogram
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector, CollectorRegistry

from quota.errors import QuotaFetchError
from quota.fetcher import QuotaFetcher

logger = logging.getLogger(__name__)

# MB -> 字节（二进制 MiB 约定）
BYTES_PER_MB = 1048576

TIMESTAMP_METRIC = 'google_workspace_quota_timestamp_seconds'
TOTAL_BYTES_METRIC = 'google_workspace_quota_total_bytes'
USED_BYTES_METRIC = 'google_workspace_quota_used_bytes'


class QuotaCollector(Collector):
    """
    配额收集器

    功能：
    - describe(): 只输出指标描述，不访问上游
    - collect(): 每次抓取获取一次配额，失败时输出无样本的指标
    """

    def __init__(self, fetcher: QuotaFetcher, registry: Optional[CollectorRegistry] = None):
        """
        初始化配额收集器

        Args:
            fetcher: 配额获取器
            registry: Prometheus registry（传入时注册自身和 Exporter 自身指标）
        """
        self.fetcher = fetcher

        # Exporter 自身指标
        self.scrape_errors_total = Counter(
            'google_quota_exporter_scrape_errors_total',
            'Total number of quota fetch errors during scrapes',
            ['error_type'],
            registry=None
        )

        self.fetch_duration_seconds = Histogram(
            'google_quota_exporter_fetch_duration_seconds',
            'Duration of quota fetch from the Reports API in seconds',
            buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
            registry=None
        )

        # 先注册自身，同一次抓取中的错误计数才能出现在本次输出里
        if registry is not None:
            registry.register(self)
            registry.register(self.scrape_errors_total)
            registry.register(self.fetch_duration_seconds)

    def _families(self) -> Tuple[GaugeMetricFamily, GaugeMetricFamily, GaugeMetricFamily]:
        """创建三个空的指标族"""
        return (
            GaugeMetricFamily(TIMESTAMP_METRIC, 'Unix time of the last quota fetch'),
            GaugeMetricFamily(TOTAL_BYTES_METRIC, 'Total storage quota in bytes'),
            GaugeMetricFamily(USED_BYTES_METRIC, 'Used storage quota in bytes'),
        )

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """输出指标描述（不访问上游）"""
        yield from self._families()

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """
        抓取时获取配额并输出指标

        上游失败时指标族不带样本，/metrics 端点不受影响
        """
        timestamp, total_bytes, used_bytes = self._families()

        start_time = time.time()
        try:
            snapshot = self.fetcher.fetch()
        except QuotaFetchError as e:
            logger.error(f"[collect] 配额获取失败: {e}")
            self.scrape_errors_total.labels(error_type=type(e).__name__).inc()
        except Exception as e:
            logger.error(f"[collect] 配额获取出现未知错误: {e}", exc_info=True)
            self.scrape_errors_total.labels(error_type='unexpected').inc()
        else:
            timestamp.add_metric([], snapshot.fetched_at)
            total_bytes.add_metric([], snapshot.total_quota_mb * BYTES_PER_MB)
            used_bytes.add_metric([], snapshot.used_quota_mb * BYTES_PER_MB)
            logger.debug(
                f"[collect] date={snapshot.report_date.isoformat()}, "
                f"total={snapshot.total_quota_mb}MB, used={snapshot.used_quota_mb}MB"
            )
        finally:
            self.fetch_duration_seconds.observe(time.time() - start_time)

        yield timestamp
        yield total_bytes
        yield used_bytes
