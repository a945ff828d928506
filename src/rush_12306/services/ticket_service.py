"""车票查询服务"""

import logging
from typing import List

from ..exceptions import NoTrainsError, StationNotFoundError
from ..models.train import SeatTypes, Train
from .platform_client import PlatformClient
from .station_service import StationService

logger = logging.getLogger(__name__)


def parse_train(ticket_str: str) -> Train:
    """解析一条 | 分隔的车次数据"""
    parts = ticket_str.split('|')
    if len(parts) < 33:  # 确保有足够的字段
        raise ValueError(f"字段数不足: {len(parts)}")
    return Train(
        secret_str=parts[0],  # 加密字符串
        train_no=parts[2],  # 列车编号
        train_number=parts[3],  # 车次
        from_station=parts[6],  # 出发站电报码
        to_station=parts[7],  # 到达站电报码
        start_time=parts[8],  # 出发时间
        arrive_time=parts[9],  # 到达时间
        train_location=parts[15],  # 列车位置码
        seat_types=SeatTypes(
            business=parts[32],  # 商务座余票
            first=parts[31],  # 一等座余票
            second=parts[30],  # 二等座余票
        )
    )


class TicketService:
    """车票查询服务"""

    def __init__(self, platform: PlatformClient, station_service: StationService):
        self.platform = platform
        self.station_service = station_service

    async def query_trains(self, from_station: str, to_station: str, train_date: str) -> List[Train]:
        """查询车次；车站无法解析或结果为空时抛出异常"""
        from_code = self.station_service.get_station_code(from_station)
        to_code = self.station_service.get_station_code(to_station)
        if not from_code or not to_code:
            raise StationNotFoundError(f"无法找到车站代码: {from_station} -> {to_station}")

        logger.info(f"🔍 查询参数: {from_station}[{from_code}] → {to_station}[{to_code}] ({train_date})")
        ticket_data = await self.platform.query_tickets(train_date, from_code, to_code)

        trains = []
        for ticket_str in ticket_data:
            try:
                trains.append(parse_train(ticket_str))
            except (IndexError, ValueError) as e:
                logger.warning(f"解析车票数据失败: {e}")
                continue

        if not trains:
            raise NoTrainsError("未查询到可用车次")
        logger.info(f"📊 找到 {len(trains)} 趟列车")
        return trains
