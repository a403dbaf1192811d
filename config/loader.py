# -*- coding: utf-8 -*-
"""
Exporter 配置加载模块

功能：
- 从环境变量读取配置（可选 YAML 配置文件作为基础）
- 定义不可变的配置数据结构（ExporterConfig）
- 读取失败时给出明确错误
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_TEMPLATE_FILE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates', 'stats.html'
)


class ConfigError(Exception):
    """配置读取或格式错误"""


@dataclass(frozen=True)
class ExporterConfig:
    """Exporter 配置（启动时读取一次，进程内不可变）"""
    credentials_file: str = 'credentials.json'   # OAuth 客户端配置文件
    token_file: str = 'token.json'               # OAuth token 文件
    host: str = '0.0.0.0'                        # 监听地址
    port: int = 8080                             # 监听端口
    stats_token: str = ''                        # 状态页的访问 token（空表示不校验）
    metrics_token: str = ''                      # /metrics 的访问 token（空表示不校验）
    request_timeout: float = 10.0                # 单次上游调用超时（秒）
    fetch_deadline: float = 30.0                 # 单次 fetch 整体截止时间（秒）
    log_level: str = 'INFO'                      # 日志级别
    template_file: str = DEFAULT_TEMPLATE_FILE   # 状态页模板文件


# 字段 -> 转换函数
_CONVERTERS = {
    'port': int,
    'request_timeout': float,
    'fetch_deadline': float,
}


def load_config(environ: Optional[Mapping[str, str]] = None) -> ExporterConfig:
    """
    加载 Exporter 配置

    优先级：环境变量 > CONFIG_FILE 指定的 YAML 文件 > 默认值
    环境变量名为字段名的大写形式（如 PORT, STATS_TOKEN）

    Args:
        environ: 环境变量映射（默认 os.environ）

    Returns:
        ExporterConfig 对象

    Raises:
        ConfigError: 配置文件不存在、YAML 解析失败或字段值无效
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}

    config_file = environ.get('CONFIG_FILE')
    if config_file:
        values.update(_load_yaml(config_file))

    for f in fields(ExporterConfig):
        env_value = environ.get(f.name.upper())
        if env_value is not None:
            values[f.name] = env_value

    converted = {}
    for name, value in values.items():
        converter = _CONVERTERS.get(name, str)
        try:
            converted[name] = converter(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"配置项 {name} 的值无效: {value!r}") from e
    if 'log_level' in converted:
        converted['log_level'] = converted['log_level'].upper()

    return ExporterConfig(**converted)


def _load_yaml(config_file: str) -> Dict[str, Any]:
    """读取 YAML 配置文件，只保留已知字段"""
    if not os.path.exists(config_file):
        raise ConfigError(f"配置文件不存在: {config_file}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except IOError as e:
        raise ConfigError(f"无法读取配置文件 {config_file}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析失败: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("配置格式错误: 顶层必须是字典类型")

    known = {f.name for f in fields(ExporterConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"配置格式错误: 未知字段 {sorted(unknown)}")

    # 留空的字段（如 `stats_token:`）按未设置处理，使用默认值
    return {name: value for name, value in data.items() if value is not None}
