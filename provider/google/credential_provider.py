# -*- coding: utf-8 -*-
"""
Credential Provider 实现

功能：
- 读取 OAuth 客户端配置（credentials.json）
- 从 token 文件加载已保存的用户凭证
- token 不存在时走一次控制台授权流程，并保存 token
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """凭证读取或授权失败（启动阶段致命错误）"""


class CredentialProvider(ABC):
    """
    凭证 Provider 接口

    功能：
    - 提供可用于调用 Google API 的凭证
    """

    @abstractmethod
    def get_credentials(self) -> Credentials:
        """
        获取凭证

        Returns:
            google-auth 凭证对象（过期后由 google-auth 自动刷新）
        """
        pass

    @abstractmethod
    def get_provider_type(self) -> str:
        """
        获取 Provider 类型

        Returns:
            Provider 类型名称，如 "oauth_file"
        """
        pass


class OAuthFileCredentialProvider(CredentialProvider):
    """
    基于文件的 OAuth 凭证 Provider

    功能：
    - 启动时读取客户端配置，格式错误直接失败
    - token 文件存在时直接加载
    - token 文件不存在或无法解析时，提示用户打开授权链接并输入授权码
    """

    def __init__(
        self,
        credentials_file: str,
        token_file: str,
        scopes: List[str],
        prompt: Callable[[str], str] = input
    ):
        """
        初始化 OAuth 凭证 Provider

        Args:
            credentials_file: OAuth 客户端配置文件路径
            token_file: token 文件路径
            scopes: 需要的 OAuth scope 列表
            prompt: 读取授权码的函数（默认从标准输入读取）
        """
        self.credentials_file = credentials_file
        self.token_file = token_file
        self.scopes = list(scopes)
        self._prompt = prompt
        self.client_config = self._load_client_config()
        logger.info(f"初始化 OAuth Credential Provider: credentials={credentials_file}, token={token_file}")

    def _load_client_config(self) -> Dict[str, Any]:
        """读取并校验 OAuth 客户端配置"""
        try:
            with open(self.credentials_file, 'r', encoding='utf-8') as f:
                client_config = json.load(f)
        except FileNotFoundError as e:
            raise CredentialError(f"OAuth 客户端配置文件不存在: {self.credentials_file}") from e
        except (OSError, ValueError) as e:
            raise CredentialError(f"无法读取 OAuth 客户端配置文件 {self.credentials_file}: {e}") from e

        if not isinstance(client_config, dict) or not ({'installed', 'web'} & set(client_config)):
            raise CredentialError(
                f"OAuth 客户端配置格式错误: {self.credentials_file} 必须包含 'installed' 或 'web'"
            )
        return client_config

    def get_credentials(self) -> Credentials:
        """
        获取凭证（优先使用已保存的 token）

        Returns:
            google-auth 凭证对象

        Raises:
            CredentialError: 授权失败或 token 无法保存
        """
        credentials = self._load_token()
        if credentials is not None:
            logger.info(f"从 token 文件加载凭证: {self.token_file}")
            return credentials

        logger.info("token 文件不存在或无效，开始授权流程")
        credentials = self._authorize()
        self._save_token(credentials)
        return credentials

    def get_provider_type(self) -> str:
        """获取 Provider 类型"""
        return "oauth_file"

    def _load_token(self) -> Optional[Credentials]:
        """加载 token 文件，不存在或无法解析时返回 None"""
        if not os.path.exists(self.token_file):
            return None
        try:
            return Credentials.from_authorized_user_file(self.token_file, self.scopes)
        except (OSError, ValueError) as e:
            logger.warning(f"token 文件无法解析，将重新授权: {self.token_file}, error={e}")
            return None

    def _authorize(self) -> Credentials:
        """控制台授权：打印授权链接，读取授权码并换取 token"""
        flow = InstalledAppFlow.from_client_config(self.client_config, self.scopes)
        client_type = 'installed' if 'installed' in self.client_config else 'web'
        redirect_uris = self.client_config[client_type].get('redirect_uris') or ['http://localhost']
        flow.redirect_uri = redirect_uris[0]

        auth_url, _ = flow.authorization_url(access_type='offline', prompt='consent')
        print(f"请在浏览器中打开以下链接完成授权:\n{auth_url}")

        try:
            code = self._prompt("输入授权码: ").strip()
        except EOFError as e:
            raise CredentialError("无法读取授权码（标准输入不可用）") from e
        if not code:
            raise CredentialError("授权码为空")

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise CredentialError(f"使用授权码换取 token 失败: {e}") from e
        return flow.credentials

    def _save_token(self, credentials: Credentials):
        """保存 token（权限 0600）"""
        logger.info(f"保存 token 文件: {self.token_file}")
        try:
            fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(credentials.to_json())
        except OSError as e:
            raise CredentialError(f"无法保存 token 文件 {self.token_file}: {e}") from e
