"""测试公共夹具"""

from typing import Dict
from unittest.mock import MagicMock

import pytest

from rush_12306.models.order import PipelineResult
from rush_12306.models.passenger import PassengerStrings
from rush_12306.services.platform_client import PlatformClient
from rush_12306.services.waitlist_pipeline import WaitlistPipeline
from rush_12306.utils.config import Settings

INIT_DC_HTML = """
<html><head><script type="text/javascript">
    var ctx = '/otn/';
    var globalRepeatSubmitToken = '8f3a1c9e0b';
    var global_lang = 'zh_CN';
    var ticketInfoForPassengerForm={'cardTypes':[{'end_station_name':null,'id':'1','value':'\\u4e2d\\u56fd\\u5c45\\u6c11\\u8eab\\u4efd\\u8bc1'},],
        'isAsync':'1','key_check_isChange':'KC0001',
        'leftTicketStr':'LT%2BABC',
        'queryLeftTicketRequestDTO':{'ypInfoDetail':'YP0001','train_date':'20250207','station_train_code':'D2913',},
        'train_location':'H6','purpose_codes':'00',};
    var orderRequestDTO={'adult_num':0};
</script></head><body></body></html>
"""


def make_settings(**overrides) -> Settings:
    values = dict(
        cookie="JSESSIONID=abc; tk=old",
        from_station="灌南",
        to_station="苏州",
        train_date="2025-02-07",
        train_number="D2913",
        passengers=["张三"],
        seat_type="O",
        poll_interval=0,
        waitlist_submit_delay=0,
        random_user_agent=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_ticket_str(secret: str, train_number: str, second: str = "有", first: str = "",
                    business: str = "", train_no: str = None) -> str:
    """构造一条 queryG 返回的 | 分隔车次串"""
    fields = [""] * 36
    fields[0] = secret
    fields[1] = "预订"
    fields[2] = train_no or f"5l0000{train_number}00"
    fields[3] = train_number
    fields[4] = "GIU"
    fields[5] = "SZH"
    fields[6] = "GIU"
    fields[7] = "SZH"
    fields[8] = "07:12"
    fields[9] = "10:41"
    fields[10] = "03:29"
    fields[11] = "Y"
    fields[15] = "H6"
    fields[30] = second
    fields[31] = first
    fields[32] = business
    return "|".join(fields)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def passenger_strings() -> PassengerStrings:
    return PassengerStrings(
        passenger_ticket_str="O,0,1,张三,1,320000199001010000,13800000000,N,enc",
        old_passenger_str="张三,1,320000199001010000,1_",
        after_nate_passenger_info="1#张三#1#320000199001010000#enc#0;",
    )


@pytest.fixture
def platform() -> MagicMock:
    """按 PlatformClient 接口生成的假客户端，async 方法自动是 AsyncMock"""
    return MagicMock(spec=PlatformClient)


@pytest.fixture
def waitlist() -> MagicMock:
    mock = MagicMock(spec=WaitlistPipeline)
    mock.run.return_value = PipelineResult(branch="waitlist", succeeded=True,
                                           state="succeeded", reserve_no="HB0001")
    return mock


def order_happy_path(platform: MagicMock, tickets, wait_responses=None) -> Dict[str, MagicMock]:
    """配置一条完整成功的下单链路"""
    platform.query_tickets.return_value = tickets
    platform.submit_order_request.return_value = {"status": True, "messages": []}
    platform.init_dc.return_value = INIT_DC_HTML
    platform.check_order_info.return_value = {"submitStatus": True}
    platform.get_queue_count.return_value = {"op_2": True, "count": "0", "ticket": "21"}
    platform.confirm_single_for_queue.return_value = {"submitStatus": True}
    platform.query_order_wait_time.side_effect = wait_responses or [
        {"queryOrderWaitTimeStatus": True, "orderId": "E123456789"}
    ]
    return platform
