"""选车：按余票状态和首选车次排序，挑出优先级最高的车次"""

import logging
import math
import random
from typing import List, Optional

from ..exceptions import TrainSelectionError
from ..models.train import RankedTrain, SelectionResult, Train

logger = logging.getLogger(__name__)

AVAILABLE = "有"
EXHAUSTED = "无"


def seat_priority(status: str) -> int:
    """'有'最高(3)，数字次之(2)，'无'和其他无法解析的值最低(1)"""
    if status == AVAILABLE:
        return 3
    if status == EXHAUSTED:
        return 1
    try:
        num = float(status)
    except (TypeError, ValueError):
        return 1
    return 2 if math.isfinite(num) and num >= 0 else 1


def seat_field(seat_type: str) -> str:
    """二等座看 second，其他席别看 first"""
    return "second" if seat_type == "O" else "first"


class TrainSelector:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def rank(self, trains: List[Train], seat_type: str, train_number: str) -> List[RankedTrain]:
        prop = seat_field(seat_type)
        ranked = [
            RankedTrain(
                **train.model_dump(include=set(Train.model_fields)),
                priority=seat_priority(getattr(train.seat_types, prop)),
                is_config_train=train.train_number == train_number,
                # 同级车次随机打散
                random_factor=self.rng.randint(1, 99),
            )
            for train in trains
        ]
        ranked.sort(key=lambda t: (t.priority, t.is_config_train, t.random_factor), reverse=True)
        return ranked

    def select(self, trains: List[Train], seat_type: str, train_number: str) -> SelectionResult:
        """返回全部排序后的车次和目标车次；车次列表为空时抛出 TrainSelectionError"""
        if not trains:
            raise TrainSelectionError("没有可选车次")
        ranked = self.rank(trains, seat_type, train_number)
        target = ranked[0]
        for t in ranked:
            logger.debug(f"{t.train_number} 优先级={t.priority} 首选={t.is_config_train} 随机={t.random_factor}")
        logger.info(f"🎯 目标车次: {target.train_number} ({target.start_time} → {target.arrive_time})，优先级 {target.priority}")
        return SelectionResult(ranked=ranked, target=target)
