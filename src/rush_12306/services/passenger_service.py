"""乘客服务"""

import logging
from typing import List

from ..models.passenger import Passenger, PassengerStrings
from .platform_client import PlatformClient

logger = logging.getLogger(__name__)


def build_passenger_strings(seat_type: str, passengers: List[Passenger]) -> PassengerStrings:
    """拼接下单（passengerTicketStr / oldPassengerStr）和候补（passengerInfo）所需的乘客串"""
    ticket_parts = [
        f"{seat_type},0,1,{p.passenger_name},{p.passenger_id_type_code},{p.passenger_id_no},"
        f"{p.mobile_no},N,{p.all_enc_str}"
        for p in passengers
    ]
    old_parts = [
        f"{p.passenger_name},{p.passenger_id_type_code},{p.passenger_id_no},1"
        for p in passengers
    ]
    hb_parts = [
        f"{p.passenger_type}#{p.passenger_name}#{p.passenger_id_type_code}#"
        f"{p.passenger_id_no}#{p.all_enc_str}#0"
        for p in passengers
    ]
    return PassengerStrings(
        passenger_ticket_str="_".join(ticket_parts),
        old_passenger_str="_".join(old_parts) + "_",
        after_nate_passenger_info=";".join(hb_parts) + ";",
    )


class PassengerService:
    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def fetch_passengers(self, names: List[str]) -> List[Passenger]:
        """获取常用联系人并按配置的姓名过滤，保持配置顺序"""
        raw = await self.platform.get_passengers()
        by_name = {}
        for item in raw:
            try:
                p = Passenger.model_validate(item)
            except ValueError as e:
                logger.warning(f"乘客数据解析失败: {e}")
                continue
            by_name.setdefault(p.passenger_name, p)
        missing = [n for n in names if n not in by_name]
        if missing:
            logger.warning(f"未找到乘客: {', '.join(missing)}")
        return [by_name[n] for n in names if n in by_name]
