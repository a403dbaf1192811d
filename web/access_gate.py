# -*- coding: utf-8 -*-
"""
访问控制模块

功能：
- 通过查询参数 token 校验请求
- 每个端点使用独立的共享密钥，密钥为空时不校验
"""

import hmac
import logging
from functools import wraps
from typing import Callable

from flask import request

logger = logging.getLogger(__name__)

TOKEN_PARAMETER = 'token'


class AccessGate:
    """
    共享 token 访问控制

    功能：
    - secret 为空：直接放行
    - secret 非空：?token= 必须与 secret 完全一致，否则返回 401，不调用被包装的 view
    """

    def __init__(self, secret: str, endpoint: str):
        """
        初始化访问控制

        Args:
            secret: 共享密钥（空字符串表示不校验）
            endpoint: 端点名称（用于日志）
        """
        self.secret = secret or ''
        self.endpoint = endpoint

    @property
    def enabled(self) -> bool:
        """是否启用 token 校验"""
        return bool(self.secret)

    def is_authorized(self, token) -> bool:
        """判断 token 是否有效"""
        if not self.enabled:
            return True
        if token is None:
            return False
        return hmac.compare_digest(token.encode('utf-8'), self.secret.encode('utf-8'))

    def __call__(self, view: Callable) -> Callable:
        """包装 Flask view"""
        @wraps(view)
        def gated(*args, **kwargs):
            if not self.is_authorized(request.args.get(TOKEN_PARAMETER)):
                logger.warning(f"[{self.endpoint}] token 校验失败: remote_addr={request.remote_addr}")
                return "Unauthorized\n", 401, {'Content-Type': 'text/plain; charset=utf-8'}
            return view(*args, **kwargs)

        return gated
