#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Google Workspace Quota Exporter 主程序入口

功能：
- 启动 Flask HTTP 服务器
- 暴露 / 配额状态页
- 暴露 /metrics 端点供 Prometheus 抓取
- 暴露 /health 健康检查端点
"""

import logging
import sys
from typing import Optional

from flask import Flask
from prometheus_client import CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

from api.google.reports import REPORTS_SCOPE, UsageReportClient
from collector import QuotaCollector
from config.loader import ConfigError, ExporterConfig, load_config
from config.validator import validate_config
from provider.google import CredentialError, OAuthFileCredentialProvider
from quota.fetcher import QUOTA_PARAMETERS, QuotaFetcher
from web import AccessGate, StatsPageHandler

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def create_app(
    config: ExporterConfig,
    fetcher: QuotaFetcher,
    template_source: str,
    registry: Optional[CollectorRegistry] = None
) -> Flask:
    """
    创建 Flask 应用

    Args:
        config: Exporter 配置
        fetcher: 配额获取器（两个端点共用，每次请求独立获取）
        template_source: 状态页模板内容
        registry: Prometheus registry（默认新建，避免进程级全局状态）

    Returns:
        Flask 应用
    """
    if registry is None:
        registry = CollectorRegistry()
    QuotaCollector(fetcher, registry=registry)

    app = Flask(__name__)

    stats_gate = AccessGate(config.stats_token, endpoint='stats')
    metrics_gate = AccessGate(config.metrics_token, endpoint='metrics')

    def metrics():
        """
        Prometheus metrics 端点

        格式：Prometheus text format
        """
        return generate_latest(registry), 200, {'Content-Type': CONTENT_TYPE_LATEST}

    def health():
        """健康检查端点（不访问上游）"""
        return {'status': 'healthy'}, 200

    app.add_url_rule('/', 'stats', stats_gate(StatsPageHandler(fetcher, template_source)))
    app.add_url_rule('/metrics', 'metrics', metrics_gate(metrics))
    app.add_url_rule('/health', 'health', health)

    logger.info(f"状态页 token 校验: {'启用' if stats_gate.enabled else '关闭'}")
    logger.info(f"/metrics token 校验: {'启用' if metrics_gate.enabled else '关闭'}")
    return app


def build_fetcher(config: ExporterConfig) -> QuotaFetcher:
    """
    初始化凭证、Reports API 客户端和配额获取器

    Raises:
        CredentialError: 凭证读取或授权失败
    """
    credential_provider = OAuthFileCredentialProvider(
        credentials_file=config.credentials_file,
        token_file=config.token_file,
        scopes=[REPORTS_SCOPE]
    )
    credentials = credential_provider.get_credentials()

    report_client = UsageReportClient(
        credentials,
        timeout=config.request_timeout,
        parameters=QUOTA_PARAMETERS
    )
    return QuotaFetcher(report_client, deadline=config.fetch_deadline)


def load_template(path: str) -> str:
    """读取状态页模板"""
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main():
    """主函数"""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    # Phase 1: 加载配置
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"加载配置失败: {e}")
        sys.exit(1)

    is_valid, error_message = validate_config(config)
    if not is_valid:
        logger.error(f"配置无效: {error_message}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    # 减少 Flask 日志
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger.info("=" * 60)
    logger.info("Google Workspace Quota Exporter 配置")
    logger.info("=" * 60)
    logger.info(f"  - credentials_file: {config.credentials_file}")
    logger.info(f"  - token_file: {config.token_file}")
    logger.info(f"  - listen: {config.host}:{config.port}")
    logger.info(f"  - request_timeout: {config.request_timeout}s")
    logger.info(f"  - fetch_deadline: {config.fetch_deadline}s")
    logger.info("=" * 60)

    # Phase 2: 初始化凭证和 Reports API 客户端
    try:
        fetcher = build_fetcher(config)
    except CredentialError as e:
        logger.error(f"凭证初始化失败: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Reports API 客户端初始化失败: {e}", exc_info=True)
        sys.exit(1)

    # Phase 3: 加载模板并创建应用
    try:
        template_source = load_template(config.template_file)
    except OSError as e:
        logger.error(f"无法读取模板文件 {config.template_file}: {e}")
        sys.exit(1)

    app = create_app(config, fetcher, template_source)

    logger.info(f"Starting HTTP server on {config.host}:{config.port}")
    print(f"\n{'=' * 60}")
    print("Exporter 已启动")
    print(f"访问 http://localhost:{config.port}/ 查看配额状态")
    print(f"访问 http://localhost:{config.port}/metrics 查看指标")
    print(f"{'=' * 60}\n")
    try:
        app.run(host=config.host, port=config.port, debug=False, threaded=True)
    except OSError as e:
        logger.error(f"无法监听端口 {config.port}: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
