import logging
from typing import Dict, Optional

import httpx

from org_directory.core.auth import GraphAuth, TokenProvider
from org_directory.core.config import settings

logger = logging.getLogger(__name__)


class GraphClient:
    """
    Graph API 异步客户端

    特性:
    - 自动注入认证头 (Authorization: Bearer)
    - 二进制资源强制缓存 (get_cached)，同一路径只请求一次
    - 不做重试，失败直接交给调用方分类处理
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url or settings.graph_root_url
        logger.info("Initializing GraphClient with base_url=%s", self.base_url)
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=GraphAuth(token_provider),
            timeout=httpx.Timeout(timeout or settings.HTTP_TIMEOUT),
            trust_env=False,  # 禁用环境变量代理
        )
        # path -> 成功的响应，等价于浏览器 fetch 的 force-cache
        self._response_cache: Dict[str, httpx.Response] = {}
        logger.debug("GraphClient initialized successfully")

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> httpx.Response:
        """
        发送请求并记录日志

        Args:
            method: HTTP 方法 (GET, POST)
            path: 相对于 API 版本根路径的路径
            json: 请求体 (可选)
            params: 查询参数 (可选)

        Returns:
            httpx.Response，4xx/5xx 不抛异常，由调用方分类
        """
        logger.debug("Making %s request to %s", method, path)
        if method == "GET":
            response = await self.client.get(path, params=params)
        elif method == "POST":
            logger.debug("POST payload: %s", json)
            response = await self.client.post(path, json=json)
        else:
            logger.error("Unsupported HTTP method: %s", method)
            raise ValueError(f"Unsupported HTTP method: {method}")

        if response.status_code >= 400:
            logger.error(
                "HTTP error %d from %s: %s",
                response.status_code,
                path,
                response.text[:200],
            )
        else:
            logger.info(
                "Request successful: %s %s -> %d",
                method,
                path,
                response.status_code,
            )
        return response

    async def get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        """GET 请求"""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict] = None) -> httpx.Response:
        """POST 请求"""
        return await self._request("POST", path, json=json)

    async def get_cached(self, path: str) -> httpx.Response:
        """
        GET 请求，优先复用同一路径上一次成功的响应

        仅缓存成功响应，失败响应每次都会重新请求。
        """
        cached = self._response_cache.get(path)
        if cached is not None:
            logger.debug("Response cache hit: %s", path)
            return cached

        response = await self.get(path)
        if response.is_success:
            self._response_cache[path] = response
        return response

    async def close(self):
        """关闭客户端连接"""
        logger.info("Closing GraphClient connection")
        await self.client.aclose()
        logger.debug("GraphClient connection closed")

