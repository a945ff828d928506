"""12306 接口封装

每个方法对应一个接口，返回原始响应体。传输失败统一抛出 RequestFailed。
登录态 SessionContext 只由本类持有，响应下发的 Cookie 合并进当前值后整体替换。
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Set
from urllib.parse import unquote

from ..exceptions import RequestFailed
from ..models.transport import SessionContext
from .http_client import BASE_URL, HttpClient, merge_cookies

logger = logging.getLogger(__name__)

DC_REFERER = f"{BASE_URL}/leftTicket/init?linktypeid=dc"
INIT_DC_REFERER = f"{BASE_URL}/confirmPassenger/initDc"
HB_PAY_REFERER = f"{BASE_URL}/view/lineUp_toPay.html"


class PlatformClient:
    """12306 下单/候补接口"""

    def __init__(self, http_client: HttpClient, context: SessionContext):
        self.http_client = http_client
        self.context = context
        self._background: Set[asyncio.Task] = set()

    async def _call(self, method: str, path: str, data: Optional[Dict[str, Any]] = None,
                    referer: Optional[str] = None, as_text: bool = False) -> Any:
        result = await self.http_client.request(
            method, f"{BASE_URL}{path}", self.context,
            data=data, referer=referer, as_text=as_text
        )
        if result.set_cookies:
            # 并发请求（后台日志）可能已更新过登录态，只合并本次下发的 Cookie
            self.context = SessionContext(cookie=merge_cookies(self.context.cookie, result.set_cookies))
        if result.failure is not None:
            raise RequestFailed(result.failure)
        return result.body

    @staticmethod
    def _data(body: Any) -> Dict[str, Any]:
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return body["data"]
        return {}

    async def check_user(self) -> bool:
        """验证Cookie有效性"""
        body = await self._call("post", "/login/checkUser", {"_json_att": ""})
        return self._data(body).get("flag") is True

    async def query_tickets(self, train_date: str, from_code: str, to_code: str,
                            purpose_codes: str = "ADULT") -> list:
        """查询余票，返回 | 分隔的原始车次串列表"""
        params = {
            "leftTicketDTO.train_date": train_date,
            "leftTicketDTO.from_station": from_code,
            "leftTicketDTO.to_station": to_code,
            "purpose_codes": purpose_codes,
        }
        body = await self._call("get", "/leftTicket/queryG", params)
        return self._data(body).get("result") or []

    async def submit_order_request(self, secret_str: str, train_date: str,
                                   from_station_name: str, to_station_name: str) -> Dict[str, Any]:
        """提交订单请求"""
        data = {
            "secretStr": unquote(secret_str),
            "train_date": train_date,
            "back_train_date": train_date,
            "tour_flag": "dc",
            "purpose_codes": "ADULT",
            "query_from_station_name": from_station_name,
            "query_to_station_name": to_station_name,
            "undefined": "",
        }
        body = await self._call("post", "/leftTicket/submitOrderRequest", data, referer=f"{BASE_URL}/leftTicket/init")
        return body if isinstance(body, dict) else {}

    async def init_dc(self) -> str:
        """初始化下单环境，返回HTML"""
        return await self._call("post", "/confirmPassenger/initDc", {"_json_att": ""}, as_text=True)

    async def get_passengers(self) -> list:
        body = await self._call("post", "/confirmPassenger/getPassengerDTOs", {"_json_att": ""})
        return self._data(body).get("normal_passengers") or []

    async def check_order_info(self, token: str, passenger_ticket_str: str,
                               old_passenger_str: str) -> Dict[str, Any]:
        """验证订单信息"""
        data = {
            "cancel_flag": 2,
            "bed_level_order_num": "000000000000000000000000000000",
            "passengerTicketStr": passenger_ticket_str,
            "oldPassengerStr": old_passenger_str,
            "tour_flag": "dc",
            "randCode": "",
            "whatsSelect": 1,
            "scene": "nc_login",
            "_json_att": "",
            "REPEAT_SUBMIT_TOKEN": token,
        }
        body = await self._call("post", "/confirmPassenger/checkOrderInfo", data)
        return self._data(body)

    async def get_queue_count(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """获取排队状态"""
        payload = dict(data, _json_att="", REPEAT_SUBMIT_TOKEN=token)
        body = await self._call("post", "/confirmPassenger/getQueueCount", payload)
        return self._data(body)

    async def confirm_single_for_queue(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """确认排队"""
        payload = dict(data, _json_att="", REPEAT_SUBMIT_TOKEN=token)
        body = await self._call("post", "/confirmPassenger/confirmSingleForQueue", payload,
                                referer=INIT_DC_REFERER)
        return self._data(body)

    async def query_order_wait_time(self, token: str) -> Dict[str, Any]:
        data = {
            "random": int(time.time() * 1000),
            "tourFlag": "dc",
            "_json_att": "",
            "REPEAT_SUBMIT_TOKEN": token,
        }
        body = await self._call("get", "/confirmPassenger/queryOrderWaitTime", data)
        return self._data(body)

    async def basedata_log(self, log_type: str, token: Optional[str] = None) -> Any:
        """上传12306日志"""
        data: Dict[str, Any] = {"type": log_type}
        if token:
            data["_json_att"] = ""
            data["REPEAT_SUBMIT_TOKEN"] = token
        return await self._call("post", "/basedata/log", data)

    def basedata_log_background(self, log_type: str, token: Optional[str] = None) -> asyncio.Task:
        """后台上传日志，失败只记录不影响流程"""
        async def _run():
            try:
                response = await self.basedata_log(log_type, token)
                logger.info(f"日志上传完成[{log_type}]: {response}")
            except Exception as e:
                logger.warning(f"日志上传失败[{log_type}]: {e}")

        task = asyncio.create_task(_run())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self):
        """等待后台任务结束"""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def check_waitlist_face(self, secret_list: str) -> Dict[str, Any]:
        """校验候补资格"""
        body = await self._call("post", "/afterNate/chechFace",
                                {"secretList": secret_list, "_json_att": ""}, referer=DC_REFERER)
        return self._data(body)

    async def submit_waitlist_order(self, secret_list: str) -> Dict[str, Any]:
        body = await self._call("post", "/afterNate/submitOrderRequest",
                                {"secretList": secret_list, "_json_att": ""}, referer=DC_REFERER)
        return self._data(body)

    async def confirm_waitlist(self, data: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._call("post", "/afterNate/confirmHB", data, referer=HB_PAY_REFERER)
        return self._data(body)

    async def query_waitlist_queue(self) -> Dict[str, Any]:
        body = await self._call("post", "/afterNate/queryQueue", {}, referer=HB_PAY_REFERER)
        return self._data(body)
