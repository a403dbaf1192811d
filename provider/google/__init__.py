# -*- coding: utf-8 -*-
"""
Google Provider 模块

功能：
- 管理 Google Admin SDK 的 OAuth 凭证
"""

from .credential_provider import CredentialProvider, CredentialError, OAuthFileCredentialProvider

__all__ = [
    'CredentialProvider',
    'CredentialError',
    'OAuthFileCredentialProvider',
]
