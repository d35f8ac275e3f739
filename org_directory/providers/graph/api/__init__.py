"""
Graph API 层 - 原子能力封装

该模块提供目录服务用户接口的原子封装，每个方法对应一个逻辑请求。

使用示例:
    from org_directory.providers.graph.api import UserAPI

    user_api = UserAPI()
    profile = await user_api.get_profile("alice@contoso.com")
"""

from .user import UserAPI

__all__ = [
    "UserAPI",
]
