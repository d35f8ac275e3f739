"""
Graph Provider 测试共享 Fixtures

- ManualScheduler: 手动触发的去抖定时器，测试中显式控制 tick 边界
- echo_batch: 按请求 id 回显的 $batch mock 响应
- GatedClient: 可控制完成时机的 $batch 假客户端
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, List

import httpx


class ManualTimer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    def __init__(self):
        self.timers: List[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def armed(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def tick(self) -> None:
        """触发所有未取消的定时器"""
        for timer in self.armed:
            timer.fired = True
            timer.callback()


def batch_requests(request: httpx.Request) -> List[dict[str, Any]]:
    return json.loads(request.content)["requests"]


def echo_batch(request: httpx.Request, reverse: bool = False) -> httpx.Response:
    """每个请求回显 200 + {"url": 原始 url}"""
    responses = [
        {"id": item["id"], "status": 200, "headers": {}, "body": {"url": item["url"]}}
        for item in batch_requests(request)
    ]
    if reverse:
        responses.reverse()
    return httpx.Response(200, json={"responses": responses})


class GatedClient:
    """
    挂起 $batch 调用直到 release 被设置的假 GraphClient

    每个请求回显 200 + {"id": url 最后一段}，关闭后再发送会抛 RuntimeError。
    """

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0
        self.closed = False

    async def post(self, path: str, json: Any = None) -> httpx.Response:
        if self.closed:
            raise RuntimeError("Cannot send a request, as the client has been closed.")
        self.calls += 1
        await self.release.wait()
        responses = [
            {
                "id": item["id"],
                "status": 200,
                "body": {"id": item["url"].split("?")[0].rsplit("/", 1)[-1]},
            }
            for item in json["requests"]
        ]
        return httpx.Response(200, json={"responses": responses})

    async def close(self) -> None:
        self.closed = True
