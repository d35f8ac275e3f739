"""
RequestBatcher - 请求合并层

把同一调度窗口内的多个逻辑请求合并成一次 POST /$batch 调用。

触发条件:
- 队列达到 max_batch_size（默认 20）时立即发送
- 否则布置去抖定时器，每次入队都会取消并重新布置；定时器触发时发送

发送协议:
- 发送前同步取走当前队列并换成空队列，发送期间新入队的请求进入下一批
- 响应按 id 分发，与响应数组顺序无关
- 批量调用本身失败时，该批所有请求以同一个异常失败
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set

from pydantic import ValidationError

from org_directory.core.config import settings
from org_directory.core.errors import BatchFailedError
from org_directory.core.graph_client import GraphClient
from org_directory.core.scheduler import LoopScheduler, Scheduler, TimerHandle
from org_directory.schemas.profile import (
    BatchItemResponse,
    BatchRequest,
    BatchRequestItem,
    BatchResponse,
)

logger = logging.getLogger(__name__)

BATCH_PATH = "/$batch"


@dataclass
class PendingRequest:
    request_id: str
    url: str
    method: str
    future: "asyncio.Future[BatchItemResponse]"

    def resolve(self, response: BatchItemResponse) -> None:
        if not self.future.done():
            self.future.set_result(response)

    def reject(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class RequestBatcher:
    def __init__(
        self,
        client: GraphClient,
        scheduler: Optional[Scheduler] = None,
        max_batch_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.client = client
        self.scheduler = scheduler or LoopScheduler()
        self.max_batch_size = (
            settings.BATCH_MAX_SIZE if max_batch_size is None else max_batch_size
        )
        self.debounce_seconds = (
            settings.BATCH_DEBOUNCE_SECONDS
            if debounce_seconds is None
            else debounce_seconds
        )

        self._queue: Dict[str, PendingRequest] = {}
        self._last_request_id = 0
        self._timer: Optional[TimerHandle] = None
        # 正在发送的批次任务，保持引用避免被回收
        self._inflight: Set["asyncio.Task[None]"] = set()

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def enqueue(
        self, relative_url: str, method: str = "GET"
    ) -> "asyncio.Future[BatchItemResponse]":
        """
        将一个逻辑请求加入当前批次

        Args:
            relative_url: 相对 API 根路径的 URL，如 /users/{id}?$select=...
            method: HTTP 方法

        Returns:
            批次发送并收到对应响应（或整体失败）后完成的 Future
        """
        self._last_request_id += 1
        request_id = str(self._last_request_id)
        future = asyncio.get_running_loop().create_future()
        self._queue[request_id] = PendingRequest(request_id, relative_url, method, future)
        logger.debug(
            "Enqueued batch request: id=%s, %s %s (pending=%d)",
            request_id,
            method,
            relative_url,
            len(self._queue),
        )

        self._cancel_timer()
        if len(self._queue) >= self.max_batch_size:
            self._start_dispatch()
        else:
            self._timer = self.scheduler.call_later(
                self.debounce_seconds, self._on_timer
            )
        return future

    async def flush(self) -> None:
        """立即发送当前队列中的请求，并等待所有在途批次完成"""
        self._cancel_timer()
        self._start_dispatch()
        if self._inflight:
            logger.debug("Waiting for %d in-flight batches", len(self._inflight))
            await asyncio.gather(*self._inflight, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._start_dispatch()

    def _take_snapshot(self) -> Dict[str, PendingRequest]:
        snapshot = self._queue
        self._queue = {}
        return snapshot

    def _start_dispatch(self) -> None:
        snapshot = self._take_snapshot()
        if not snapshot:
            return
        task = asyncio.ensure_future(self._dispatch(snapshot))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    @staticmethod
    def _reject_all(snapshot: Dict[str, PendingRequest], error: BatchFailedError) -> None:
        logger.error("Batch of %d requests failed: %s", len(snapshot), error)
        for req in snapshot.values():
            req.reject(error)

    async def _dispatch(self, snapshot: Dict[str, PendingRequest]) -> None:
        payload = BatchRequest(
            requests=[
                BatchRequestItem(id=req.request_id, method=req.method, url=req.url)
                for req in snapshot.values()
            ]
        )
        logger.info("Dispatching batch with %d requests", len(snapshot))

        try:
            batch = await self._send(payload)
        except asyncio.CancelledError:
            self._reject_all(snapshot, BatchFailedError("Batch request cancelled"))
            raise
        except BatchFailedError as e:
            self._reject_all(snapshot, e)
            return

        for item in batch.responses:
            req = snapshot.get(item.id)
            if req is None:
                logger.warning("Batch response for unknown request id=%s ignored", item.id)
                continue
            req.resolve(item)

        missing = [req for req in snapshot.values() if not req.future.done()]
        if missing:
            logger.warning(
                "Batch response missing %d of %d request ids", len(missing), len(snapshot)
            )
            for req in missing:
                req.reject(
                    BatchFailedError(f"No response for batch request id={req.request_id}")
                )

    async def _send(self, payload: BatchRequest) -> BatchResponse:
        """发送批量请求并解析响应信封，所有失败统一转换为 BatchFailedError"""
        try:
            response = await self.client.post(BATCH_PATH, json=payload.model_dump())
        except Exception as e:
            # 任何异常都视为整批失败，不能让 Future 悬空
            raise BatchFailedError(f"Batch request failed: {e}") from e

        if not response.is_success:
            raise BatchFailedError(
                f"Batch request failed with HTTP {response.status_code}: "
                f"{response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return BatchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise BatchFailedError(f"Invalid batch response: {e}") from e
