"""
定时调度抽象

批处理器通过 Scheduler 布置去抖定时器，默认实现委托给当前运行的事件循环；
测试可以注入手动调度器，显式控制 tick 边界。
"""

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """基于 asyncio 事件循环的调度器"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)
