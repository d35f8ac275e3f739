"""
目录服务错误分类

- NotFoundError: 单个操作返回 HTTP 404（上级链遍历将其视为到达顶层）
- OperationFailedError: 单个操作的其他非成功状态
- BatchFailedError: $batch 调用本身失败，同一批次的所有请求共享同一个异常
- TokenError: 外部凭据提供方未返回 token
"""

from typing import Any, Optional

import httpx


class DirectoryError(Exception):
    """目录服务错误基类"""

    pass


class NotFoundError(DirectoryError):
    """实体不存在 (HTTP 404)"""

    def __init__(self, message: str = "Not Found"):
        self.status_code = 404
        super().__init__(message)


class OperationFailedError(DirectoryError):
    """单个操作失败（非 404 的 4xx/5xx）"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(message)


class BatchFailedError(DirectoryError):
    """批量请求整体失败"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TokenError(DirectoryError):
    """Token 获取失败"""

    pass


def _extract_error_message(body: Any) -> Optional[str]:
    # Graph error payload: {"error": {"code": "...", "message": "..."}}
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return None


def error_from_status(
    status: int, body: Any = None, reason: Optional[str] = None
) -> DirectoryError:
    """
    将 HTTP 状态码和响应体分类为类型化异常

    Args:
        status: HTTP 状态码
        body: 已解析的响应体（可选）
        reason: 状态描述，响应体中无错误信息时使用

    Returns:
        NotFoundError 或 OperationFailedError
    """
    message = _extract_error_message(body) or reason or str(status)
    if status == 404:
        return NotFoundError(message)
    return OperationFailedError(status, message)


def error_from_response(response: httpx.Response) -> DirectoryError:
    """对直接调用（非批量）的响应进行错误分类"""
    try:
        body = response.json()
    except ValueError:
        body = None
    return error_from_status(response.status_code, body, response.reason_phrase)
