"""
Description: 验证 Provider Stack (Batcher + UserAPI + ProfileManager)
    打印指定用户的资料、上级链和直属下属，需要配置 GRAPH_ACCESS_TOKEN。
Usage:
    uv run scripts/show_reporting_chain.py alice@contoso.com
"""

import argparse
import asyncio
import logging
import os
import sys

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from org_directory.core.errors import DirectoryError
from org_directory.core.graph_client import GraphClient
from org_directory.providers.graph.api import UserAPI
from org_directory.providers.graph.managers import ProfileManager

# 配置日志
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


async def main(key: str):
    manager = ProfileManager(user_api=UserAPI(client=GraphClient()))

    try:
        print(f"正在获取用户资料: {key} ...")
        # 同一 tick 内发起，资料查询会合并进同一个 $batch
        profile, managers, directs = await asyncio.gather(
            manager.resolve_profile(key),
            manager.get_all_managers(key),
            manager.get_directs(key),
        )

        print(f"\n{profile.display_name} <{profile.email}> - {profile.job_title}")

        print(f"\n上级链 ({len(managers)}):")
        for depth, boss in enumerate(managers, start=1):
            print(f"  {'  ' * depth}↑ {boss.display_name} ({boss.job_title})")

        print(f"\n直属下属 ({len(directs)}):")
        for direct in directs:
            print(f"  - {direct.display_name} <{direct.email}>")

        print(f"\n缓存状态: {manager.cached_keys()}")

    except DirectoryError as e:
        print(f"\n❌ 失败: {type(e).__name__}: {e}")
    finally:
        await manager.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show a user's reporting chain")
    parser.add_argument("key", help="user id or email")
    args = parser.parse_args()
    asyncio.run(main(args.key))
