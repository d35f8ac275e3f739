"""
API 测试共享 Fixtures

提供 API 测试中通用的 Mock 对象和辅助函数。
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from org_directory.schemas.profile import BatchItemResponse


def create_mock_response(
    status_code: int = 200,
    data: Any = None,
    content: Optional[bytes] = None,
    headers: Optional[dict[str, str]] = None,
) -> httpx.Response:
    """
    创建模拟 HTTP 响应对象。

    Args:
        status_code: HTTP 状态码
        data: 响应 JSON 数据
        content: 原始二进制内容（与 data 二选一）
        headers: 响应头

    Returns:
        httpx.Response
    """
    if content is not None:
        return httpx.Response(status_code, content=content, headers=headers)
    return httpx.Response(status_code, json=data, headers=headers)


def batch_item(status: int, body: Any, request_id: str = "1") -> "asyncio.Future[BatchItemResponse]":
    """创建已完成的批量响应 Future（需在事件循环内调用）"""
    future = asyncio.get_running_loop().create_future()
    future.set_result(BatchItemResponse(id=request_id, status=status, body=body))
    return future
