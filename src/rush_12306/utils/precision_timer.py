"""高精度定时器

粗等待到目标前 coarse_margin，再逐次让出事件循环逼近，
最后 spin_threshold 以内忙等待（不挂起）。
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from ..exceptions import SchedulerError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def to_timestamp(target: Union[datetime, float, int]) -> float:
    """datetime 或 epoch 秒 -> epoch 秒"""
    if isinstance(target, datetime):
        if target.tzinfo is None:
            raise SchedulerError(f"目标时间缺少时区: {target}")
        return target.timestamp()
    return float(target)


def busy_wait_until(target_ts: float, clock: Clock = time.time) -> float:
    """忙等待直到 clock() >= target_ts，返回最后一次读到的时间"""
    now = clock()
    while now < target_ts:
        now = clock()
    return now


class PrecisionScheduler:
    """两阶段等待到指定时刻"""

    def __init__(self,
                 clock: Clock = time.time,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None,
                 coarse_margin: float = 0.050,
                 spin_threshold: float = 0.010,
                 spin_enabled: bool = True):
        self.clock = clock
        self.sleep = sleep or asyncio.sleep
        self.coarse_margin = coarse_margin
        self.spin_threshold = spin_threshold
        self.spin_enabled = spin_enabled

    @classmethod
    def from_settings(cls, settings) -> "PrecisionScheduler":
        return cls(
            coarse_margin=settings.coarse_margin_ms / 1000,
            spin_threshold=settings.spin_threshold_ms / 1000,
            spin_enabled=settings.spin_enabled
        )

    async def wait_until(self, target: Union[datetime, float, int]) -> float:
        """等待到 target，返回唤醒时的时间戳；目标时间已过则直接抛出 SchedulerError"""
        target_ts = to_timestamp(target)
        remaining = target_ts - self.clock()
        if remaining <= 0:
            raise SchedulerError(f"目标时间必须在未来，已过去 {-remaining:.3f}s")

        logger.info(f"⏳ 距离目标时间还有 {remaining:.3f}s")

        # 第一阶段：粗粒度等待
        coarse = remaining - self.coarse_margin
        if coarse > 0:
            await self.sleep(coarse)

        # 第二阶段：精确逼近
        while True:
            remaining = target_ts - self.clock()
            if remaining <= 0:
                return self.clock()
            if remaining > self.spin_threshold:
                await asyncio.sleep(0)
                continue
            if not self.spin_enabled:
                await self.sleep(remaining)
                continue
            return busy_wait_until(target_ts, self.clock)
