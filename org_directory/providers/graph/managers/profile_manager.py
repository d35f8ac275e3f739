"""
ProfileManager - 多键缓存管理器

同一个实体可以通过 id 或邮箱查询，也可以通过不同操作（资料、头像、上级、下属）
触达。本管理器在 UserAPI 之前做请求合并与记忆化。

缓存层级（四个相互独立的 key -> Future 映射）:
- profiles: 用户资料
- photos: 头像 data URI
- managers: 直属上级资料
- directs: 直属下属列表

核心规则:
1. 首次查询某个 key 时立即发起请求，并在请求完成前把 Future 存入缓存，
   同一窗口内对同一 key 的并发查询共享一次网络调用
2. 实体身份解析成功后，把同一个 Future 以该实体的 id 和邮箱再存一份（交叉索引）
3. 失败的 Future 保留在原 key 下（不自动重试），但不会被交叉索引
4. 上级的资料、下属列表中的每个成员都会预填到 profiles 缓存

使用示例:
    manager = ProfileManager(user_api=UserAPI(client=GraphClient()))

    profile = await manager.resolve_profile("alice@contoso.com")
    chain = await manager.get_all_managers(profile.id)
"""

import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, TypeVar

from org_directory.core.config import settings
from org_directory.core.errors import NotFoundError
from org_directory.providers.graph.api import UserAPI
from org_directory.schemas.profile import Profile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _succeeded(future: asyncio.Future) -> bool:
    return not future.cancelled() and future.exception() is None


class ProfileManager:
    """
    多键缓存管理器 (Manager Layer)

    每个应用上下文构造一次，自己持有四个缓存映射；
    条目从不过期、从不淘汰。
    """

    def __init__(
        self,
        user_api: Optional[UserAPI] = None,
        max_chain_depth: Optional[int] = None,
    ):
        """
        初始化 ProfileManager

        Args:
            user_api: UserAPI 实例（可选，默认自动创建）
            max_chain_depth: 上级链最大深度（可选，默认读取配置）
        """
        self.user_api = user_api or UserAPI()
        self.max_chain_depth = (
            settings.MANAGER_CHAIN_MAX_DEPTH
            if max_chain_depth is None
            else max_chain_depth
        )

        self._profiles: Dict[str, "asyncio.Future[Profile]"] = {}
        self._photos: Dict[str, "asyncio.Future[str]"] = {}
        self._managers: Dict[str, "asyncio.Future[Profile]"] = {}
        self._directs: Dict[str, "asyncio.Future[List[Profile]]"] = {}

    def cached_keys(self) -> Dict[str, int]:
        """各缓存当前的 key 数量"""
        return {
            "profiles": len(self._profiles),
            "photos": len(self._photos),
            "managers": len(self._managers),
            "directs": len(self._directs),
        }

    async def close(self) -> None:
        """发送剩余的批量请求并关闭底层连接"""
        await self.user_api.batcher.flush()
        await self.user_api.client.close()

    # ========== Profiles ==========

    async def resolve_profile(self, key: str) -> Profile:
        """
        根据 id 或邮箱获取用户资料

        Raises:
            NotFoundError / OperationFailedError / BatchFailedError
        """
        future = self._profiles.get(key)
        if future is None:
            logger.debug("Profile cache miss: key=%s", key)
            future = self._start(self.user_api.get_profile(key))
            self._profiles[key] = future
            self._cache_by_id_or_email(future, future, self._profiles)
        else:
            logger.debug("Profile cache hit: key=%s", key)
        return await asyncio.shield(future)

    # ========== Photos ==========

    async def get_photo_url(self, key: str) -> str:
        """获取头像 data URI"""
        future = self._photos.get(key)
        if future is None:
            logger.debug("Photo cache miss: key=%s", key)
            future = self._start(self.user_api.get_photo_url(key))
            self._photos[key] = future
            self._cache_by_id_or_email(self._profiles.get(key), future, self._photos)
        else:
            logger.debug("Photo cache hit: key=%s", key)
        return await asyncio.shield(future)

    # ========== Managers ==========

    async def get_manager(self, key: str) -> Profile:
        """
        获取直属上级

        上级的资料同时以上级自己的 id/邮箱预填到 profiles 缓存。

        Raises:
            NotFoundError: 没有上级（或用户不存在）
        """
        future = self._managers.get(key)
        if future is None:
            logger.debug("Manager cache miss: key=%s", key)
            future = self._start(self.user_api.get_manager(key))
            self._managers[key] = future
            self._cache_by_id_or_email(self._profiles.get(key), future, self._managers)
            self._cache_by_id_or_email(future, future, self._profiles)
        else:
            logger.debug("Manager cache hit: key=%s", key)
        return await asyncio.shield(future)

    async def get_all_managers(self, key: str) -> List[Profile]:
        """
        沿上级关系向上遍历，返回从直属上级到最顶层的有序列表

        最多遍历 max_chain_depth 层，遇到 NotFoundError 视为到达顶层并正常返回；
        其他错误直接抛出，已获取的部分结果丢弃。
        """
        managers: List[Profile] = []
        current = key
        for _ in range(self.max_chain_depth):
            try:
                manager = await self.get_manager(current)
            except NotFoundError:
                logger.debug("Reached top of reporting chain at %s", current)
                break
            managers.append(manager)
            current = manager.id
        else:
            logger.warning(
                "Reporting chain of %s truncated at depth %d", key, self.max_chain_depth
            )

        logger.info("Resolved %d managers above %s", len(managers), key)
        return managers

    # ========== Direct reports ==========

    async def get_directs(self, key: str) -> List[Profile]:
        """获取直属下属；成功后每个下属都预填到 profiles 缓存"""
        future = self._directs.get(key)
        if future is None:
            logger.debug("Directs cache miss: key=%s", key)
            future = self._start(self.user_api.get_direct_reports(key))
            self._directs[key] = future
            self._cache_by_id_or_email(self._profiles.get(key), future, self._directs)
            future.add_done_callback(self._seed_direct_profiles)
        else:
            logger.debug("Directs cache hit: key=%s", key)
        return await asyncio.shield(future)

    def _seed_direct_profiles(self, future: "asyncio.Future[List[Profile]]") -> None:
        if not _succeeded(future):
            return
        for direct in future.result():
            resolved = future.get_loop().create_future()
            resolved.set_result(direct)
            for lookup_key in direct.lookup_keys():
                self._profiles[lookup_key] = resolved
        logger.debug("Seeded %d direct report profiles", len(future.result()))

    # ========== Helpers ==========

    @staticmethod
    def _start(coro: Awaitable[T]) -> "asyncio.Future[T]":
        return asyncio.ensure_future(coro)

    @staticmethod
    def _cache_by_id_or_email(
        identity: Optional["asyncio.Future[Profile]"],
        value: asyncio.Future,
        cache: Dict[str, asyncio.Future],
    ) -> None:
        """
        身份解析成功后，把 value 以实体的 id 和邮箱存入 cache

        identity 或 value 任一失败都不写入（不缓存错误）。
        identity 为 None 表示尚无可用的身份来源，直接跳过。
        """
        if identity is None:
            return

        def _store(profile: Profile, fut: asyncio.Future) -> None:
            if not _succeeded(fut):
                return
            for lookup_key in profile.lookup_keys():
                cache[lookup_key] = fut

        def _on_identity(fut: "asyncio.Future[Profile]") -> None:
            if not _succeeded(fut):
                return
            profile = fut.result()
            if value.done():
                _store(profile, value)
            else:
                value.add_done_callback(lambda done: _store(profile, done))

        identity.add_done_callback(_on_identity)
