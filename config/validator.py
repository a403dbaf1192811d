# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证端口、日志级别和超时的取值范围
"""

from typing import Optional, Tuple

from config.loader import ExporterConfig

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def validate_config(config: ExporterConfig) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: ExporterConfig 对象

    Returns:
        (is_valid, error_message) 元组
    """
    if not 1 <= config.port <= 65535:
        return False, f"port 必须在 1-65535 之间: {config.port}"

    if config.log_level not in VALID_LOG_LEVELS:
        return False, f"log_level 必须是以下值之一: {', '.join(VALID_LOG_LEVELS)}"

    if config.request_timeout <= 0:
        return False, "request_timeout 必须大于 0"

    if config.fetch_deadline <= 0:
        return False, "fetch_deadline 必须大于 0"

    if not config.credentials_file:
        return False, "credentials_file 不能为空"

    if not config.token_file:
        return False, "token_file 不能为空"

    return True, None
