"""
UserAPI - 用户相关原子能力层
负责单个逻辑请求的发送、响应分类与载荷映射

对应 Graph 接口:
- 获取用户资料: GET /users/{key}?$select=...  (经 $batch 合并发送)
- 获取直属上级: GET /users/{key}/manager?$select=...
- 获取头像: GET /users/{key}/photo/$value
- 获取直属下属: GET /users/{key}/directReports?$select=...,accountEnabled

key 可以是用户 id，也可以是邮箱。
"""

import base64
import logging
from typing import List, Optional

from pydantic import ValidationError

from org_directory.core.errors import (
    OperationFailedError,
    error_from_response,
    error_from_status,
)
from org_directory.core.graph_client import GraphClient
from org_directory.providers.graph.batcher import RequestBatcher
from org_directory.schemas.profile import (
    PROFILE_FIELDS,
    DirectReportsPage,
    GraphUser,
    Profile,
)

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_CONTENT_TYPE = "image/jpeg"


def _read_json(resp):
    try:
        return resp.json()
    except ValueError as e:
        raise OperationFailedError(resp.status_code, f"Invalid JSON response: {e}") from e


def _parse_user(data, status_code: int) -> Profile:
    try:
        return GraphUser.model_validate(data).to_profile()
    except ValidationError as e:
        raise OperationFailedError(status_code, f"Malformed user payload: {e}") from e


class UserAPI:
    """
    Graph 用户 API 封装 (Base API Layer)

    职责: 每个方法发出一个逻辑请求，并在此处区分“服务返回了空/部分数据”
    与“服务报错”两种情况；token 获取交给 GraphClient 的认证流程。
    """

    def __init__(
        self,
        client: Optional[GraphClient] = None,
        batcher: Optional[RequestBatcher] = None,
    ):
        self.client = client or GraphClient()
        self.batcher = batcher or RequestBatcher(self.client)

    async def get_profile(self, key: str) -> Profile:
        """
        获取用户资料（批量通道）

        Args:
            key: 用户 id 或邮箱

        Returns:
            Profile

        Raises:
            NotFoundError: 用户不存在
            OperationFailedError: 其他错误状态
            BatchFailedError: 所在批次整体失败
        """
        url = f"/users/{key}?$select={PROFILE_FIELDS}"
        logger.debug("Resolving profile: key=%s", key)

        item = await self.batcher.enqueue(url, "GET")
        if not item.is_success:
            logger.error("获取用户资料失败: key=%s, status=%d", key, item.status)
            raise error_from_status(item.status, item.body)

        return _parse_user(item.body or {}, item.status)

    async def get_manager(self, key: str) -> Profile:
        """
        获取直属上级

        Raises:
            NotFoundError: 用户不存在或没有上级
            OperationFailedError: 其他错误状态
        """
        url = f"/users/{key}/manager?$select={PROFILE_FIELDS}"
        logger.debug("Getting manager: key=%s", key)

        resp = await self.client.get(url)
        if not resp.is_success:
            raise error_from_response(resp)

        manager = _parse_user(_read_json(resp), resp.status_code)
        logger.info("Resolved manager of %s -> %s", key, manager.id)
        return manager

    async def get_photo_url(self, key: str) -> str:
        """
        获取头像，返回可在本地直接解析的 data URI

        同一路径的二进制内容由 GraphClient 强制缓存，不会重复下载。
        """
        url = f"/users/{key}/photo/$value"
        logger.debug("Getting photo: key=%s", key)

        resp = await self.client.get_cached(url)
        if not resp.is_success:
            raise error_from_response(resp)

        content_type = resp.headers.get("content-type", DEFAULT_PHOTO_CONTENT_TYPE)
        encoded = base64.b64encode(resp.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    async def get_direct_reports(self, key: str) -> List[Profile]:
        """
        获取直属下属列表，过滤掉已停用 (accountEnabled=false) 的账号

        Returns:
            下属 Profile 列表，可能为空
        """
        url = f"/users/{key}/directReports?$select={PROFILE_FIELDS},accountEnabled"
        logger.debug("Getting direct reports: key=%s", key)

        resp = await self.client.get(url)
        if not resp.is_success:
            raise error_from_response(resp)

        try:
            page = DirectReportsPage.model_validate(_read_json(resp))
        except ValidationError as e:
            raise OperationFailedError(
                resp.status_code, f"Malformed directReports payload: {e}"
            ) from e

        directs = [
            user.to_profile() for user in page.value if user.account_enabled is not False
        ]
        logger.info(
            "Retrieved %d direct reports for %s (%d disabled skipped)",
            len(directs),
            key,
            len(page.value) - len(directs),
        )
        return directs
