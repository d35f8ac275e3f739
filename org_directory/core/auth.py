import logging
from typing import Awaitable, Callable, Optional

import httpx

from org_directory.core.config import settings
from org_directory.core.errors import TokenError

logger = logging.getLogger(__name__)

# 外部凭据提供方：返回 bearer token，获取失败时返回 None
TokenProvider = Callable[[], Awaitable[Optional[str]]]


def _mask_token(token: str, visible_chars: int = 4) -> str:
    """对 token 进行脱敏处理，仅显示前几个字符"""
    if not token or len(token) <= visible_chars:
        return "***"
    return f"{token[:visible_chars]}***"


class AuthManager:
    """
    默认的 token 提供方

    token 的获取与刷新由外部负责，这里只读取配置中的静态 token。
    需要动态凭据时，向 GraphAuth 注入自定义 TokenProvider 即可。
    """

    def __init__(self, static_token: Optional[str] = None):
        self._static_token = static_token
        self._warned = False

    async def get_access_token(self) -> Optional[str]:
        """
        Get the bearer token for Graph calls.

        Returns:
            Token string, or None if no credential is configured.
        """
        token = self._static_token or settings.GRAPH_ACCESS_TOKEN
        if not token:
            logger.error("No Graph access token configured (GRAPH_ACCESS_TOKEN)")
            return None

        if not self._warned:
            # 静态令牌无法检查过期状态
            logger.warning(
                "Using static GRAPH_ACCESS_TOKEN %s. "
                "Token expiration cannot be verified - if API calls fail with 401, "
                "please check if the token has expired.",
                _mask_token(token),
            )
            self._warned = True
        return token


class GraphAuth(httpx.Auth):
    """
    Custom Auth for Graph API.
    Asks the token provider for a token on every request and injects it
    as a bearer Authorization header.
    """

    def __init__(self, token_provider: Optional[TokenProvider] = None):
        self.token_provider = token_provider or auth_manager.get_access_token

    async def async_auth_flow(self, request: httpx.Request):
        token = await self.token_provider()
        if not token:
            raise TokenError("Failed to retrieve Graph access token")

        request.headers["Authorization"] = f"Bearer {token}"
        yield request


# Singleton instance
auth_manager = AuthManager()
