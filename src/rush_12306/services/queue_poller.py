"""排队轮询"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PollStatus(str, Enum):
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class PollOutcome(BaseModel):
    status: PollStatus = Field(..., description="终止状态")
    marker: Optional[str] = Field(None, description="订单号 / 候补单号")
    response: Any = Field(None, description="最后一次响应")
    attempts: int = Field(0, description="查询次数")

    @property
    def succeeded(self) -> bool:
        return self.status == PollStatus.SUCCEEDED


Classifier = Callable[[Any], Tuple[PollStatus, Optional[str]]]


class QueuePoller:
    """每隔 interval 秒查询一次，直到成功、失败、取消或超时

    不设次数上限，没有退避。
    """

    def __init__(self, interval: float = 3.0):
        self.interval = interval

    async def _wait(self, cancel: Optional[asyncio.Event], seconds: float) -> bool:
        """等待一个间隔；返回 True 表示被取消"""
        if cancel is None:
            await asyncio.sleep(seconds)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def poll(self,
                   fetch: Callable[[], Awaitable[Any]],
                   classify: Classifier,
                   on_response: Optional[Callable[[Any], None]] = None,
                   cancel: Optional[asyncio.Event] = None,
                   timeout: Optional[float] = None) -> PollOutcome:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        attempts = 0
        response: Any = None

        while True:
            wait = self.interval
            if deadline is not None:
                left = deadline - loop.time()
                if left <= 0:
                    logger.warning(f"轮询超时，共查询 {attempts} 次")
                    return PollOutcome(status=PollStatus.TIMED_OUT, response=response, attempts=attempts)
                wait = min(wait, left)

            if cancel is not None and cancel.is_set():
                return PollOutcome(status=PollStatus.CANCELLED, response=response, attempts=attempts)
            if await self._wait(cancel, wait):
                logger.info("轮询已取消")
                return PollOutcome(status=PollStatus.CANCELLED, response=response, attempts=attempts)
            if deadline is not None and loop.time() >= deadline:
                continue

            response = await fetch()
            attempts += 1
            if on_response is not None:
                on_response(response)

            status, marker = classify(response)
            if status in (PollStatus.SUCCEEDED, PollStatus.FAILED):
                return PollOutcome(status=status, marker=marker, response=response, attempts=attempts)
