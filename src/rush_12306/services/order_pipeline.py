"""普通下单流程

IDLE -> TICKETS_QUERIED -> TRAIN_SELECTED -> ORDER_REQUESTED -> SESSION_INITIALIZED
-> ORDER_VERIFIED -> QUEUE_JOINED -> QUEUE_CONFIRMED -> POLLING -> SUCCEEDED / FAILED

全部车次无票（或配置了直接候补）时在 TRAIN_SELECTED 转入候补；
订单验证失败时转入候补，而不是终止。
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import PipelineAbort, RequestFailed, Rush12306Error
from ..models.order import (
    OrderSession,
    OrderState,
    PipelineEvent,
    PipelineResult,
    WaitlistPlan,
)
from ..models.passenger import PassengerStrings
from ..models.train import RankedTrain, Train
from ..utils.config import Settings
from ..utils.date_utils import to_gmt_string
from .platform_client import PlatformClient
from .queue_poller import PollStatus, QueuePoller
from .station_service import StationService
from .ticket_service import TicketService
from .token_extractor import extract_submit_tokens
from .train_selector import TrainSelector
from .waitlist_pipeline import WaitlistPipeline, build_waitlist_plan

logger = logging.getLogger(__name__)


def classify_order_wait(response: Dict[str, Any]) -> Tuple[PollStatus, Optional[str]]:
    if not response.get("queryOrderWaitTimeStatus"):
        return PollStatus.FAILED, None
    order_id = response.get("orderId")
    if order_id:
        return PollStatus.SUCCEEDED, str(order_id)
    return PollStatus.WAITING, None


class OrderPipeline:
    """普通下单状态机"""

    def __init__(self, platform: PlatformClient, settings: Settings,
                 passenger_strings: PassengerStrings,
                 station_service: StationService,
                 selector: Optional[TrainSelector] = None,
                 poller: Optional[QueuePoller] = None,
                 waitlist: Optional[WaitlistPipeline] = None,
                 on_event: Optional[Callable[[PipelineEvent], None]] = None,
                 cancel: Optional[asyncio.Event] = None):
        self.platform = platform
        self.settings = settings
        self.passenger_strings = passenger_strings
        self.station_service = station_service
        self.ticket_service = TicketService(platform, station_service)
        self.selector = selector or TrainSelector()
        self.poller = poller or QueuePoller(settings.poll_interval)
        self.on_event = on_event
        self.cancel = cancel
        self.waitlist = waitlist or WaitlistPipeline(platform, settings, poller=self.poller,
                                                     on_event=on_event, cancel=cancel)
        self.state = OrderState.IDLE
        self.session = OrderSession()
        self.events: List[PipelineEvent] = []
        self.ranked: List[RankedTrain] = []
        self.plan: Optional[WaitlistPlan] = None

    def _emit(self, kind: str, message: str = "", data: Any = None):
        event = PipelineEvent(kind=kind, state=self.state.value, message=message, data=data)
        self.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    def _transition(self, state: OrderState, message: str = ""):
        logger.info(f"[下单] {self.state.value} -> {state.value} {message}")
        self.state = state
        self._emit("transition", message)

    def _result(self, succeeded: bool, **kwargs) -> PipelineResult:
        return PipelineResult(branch="order", succeeded=succeeded, state=self.state.value,
                              target=self.session.target, **kwargs)

    async def run(self) -> PipelineResult:
        """执行完整流程；致命错误返回失败结果而不抛出"""
        try:
            return await self._run()
        except Rush12306Error as e:
            logger.error(f"❌ 流程中断: {e}")
            failed_at = self.state.value
            self.state = OrderState.FAILED
            self._emit("abort", str(e), {"failed_at": failed_at})
            return self._result(False, error=str(e))

    async def _run(self) -> PipelineResult:
        s = self.settings

        # 1. 查询车次
        trains = await self.ticket_service.query_trains(s.from_station, s.to_station, s.train_date)
        self._transition(OrderState.TICKETS_QUERIED, f"{len(trains)}趟")

        # 2. 选车，同时算好候补计划
        selection = self.selector.select(trains, s.seat_type, s.train_number)
        self.ranked = selection.ranked
        target = selection.target
        self.session.target = target
        plan = build_waitlist_plan(s.seat_type, trains, target)
        self.plan = plan
        self._transition(OrderState.TRAIN_SELECTED, target.train_number)

        if s.hb_immediately or selection.all_exhausted:
            reason = "配置了直接候补" if s.hb_immediately else "全部车次无票"
            return await self._enter_waitlist(plan, reason)

        # 3. 提交订单
        await self._submit_order(target)
        self._transition(OrderState.ORDER_REQUESTED)

        # 4. 初始化下单环境
        html = await self.platform.init_dc()
        tokens = extract_submit_tokens(html)
        self.session.token = tokens.token
        self.session.ticket_info = tokens.ticket_info
        self._transition(OrderState.SESSION_INITIALIZED)

        # 5. 验证订单
        checked = await self.platform.check_order_info(
            self.session.token,
            self.passenger_strings.passenger_ticket_str,
            self.passenger_strings.old_passenger_str
        )
        logger.info(f"订单验证: {checked}")
        if not checked.get("submitStatus"):
            return await self._enter_waitlist(plan, f"订单验证失败: {checked.get('errMsg', '')}")
        self._transition(OrderState.ORDER_VERIFIED)

        # 6. 获取排队状态
        queue_count = await self.platform.get_queue_count(self.session.token, self.queue_count_params(target))
        self.session.queue_count = queue_count
        logger.info(f"排队状态: {queue_count}")
        if not queue_count.get("op_2"):
            raise PipelineAbort("排队失败", self.state.value)
        self._transition(OrderState.QUEUE_JOINED)

        # 7. 上传日志（不等待结果）
        self.platform.basedata_log_background("dc", self.session.token)

        # 8. 确认排队
        confirm = await self.platform.confirm_single_for_queue(self.session.token, self.confirm_params())
        self.session.confirm_result = confirm
        if not confirm.get("submitStatus"):
            raise PipelineAbort(f"出票失败, 原因：{confirm.get('errMsg', '')}", self.state.value)
        self._transition(OrderState.QUEUE_CONFIRMED)

        # 9. 轮询订单状态
        self._transition(OrderState.POLLING)
        outcome = await self.poller.poll(self._fetch_wait_time, classify_order_wait,
                                         on_response=self._on_poll, cancel=self.cancel)
        if outcome.succeeded:
            self.state = OrderState.SUCCEEDED
            logger.info(f"✅ 恭喜下单成功，订单号{outcome.marker}，请手动完成支付！")
            self._emit("success", "下单成功", {"order_id": outcome.marker})
            return self._result(True, order_id=outcome.marker)

        self.state = OrderState.FAILED
        message = "订单已失效" if outcome.status == PollStatus.FAILED else f"轮询结束: {outcome.status.value}"
        logger.error(message)
        self._emit("abort", message, {"poll_status": outcome.status.value})
        return self._result(False, error=message)

    async def _submit_order(self, target: Train):
        s = self.settings
        from_name = self.station_service.get_station_name(target.from_station) or s.from_station
        to_name = self.station_service.get_station_name(target.to_station) or s.to_station
        response = await self.platform.submit_order_request(target.secret_str, s.train_date, from_name, to_name)
        if response.get("status") is not True:
            messages = response.get("messages") or []
            if isinstance(messages, list):
                messages = ";".join(str(m) for m in messages)
            raise PipelineAbort(messages or "订单提交失败", self.state.value)

    async def _enter_waitlist(self, plan: WaitlistPlan, reason: str) -> PipelineResult:
        logger.warning(f"{reason}, 准备进入候补队列")
        self._emit("waitlist_entry", reason, {
            "plans": plan.plans,
            "secret_list": plan.secret_list,
            "passenger_info": self.passenger_strings.after_nate_passenger_info,
        })
        self.state = OrderState.WAITLISTED
        return await self.waitlist.run(plan, self.passenger_strings.after_nate_passenger_info,
                                       target=self.session.target)

    def queue_count_params(self, target: Train) -> Dict[str, Any]:
        info = self.session.ticket_info
        left_ticket = (info.get("queryLeftTicketRequestDTO") or {}).get("ypInfoDetail", "")
        return {
            "train_date": to_gmt_string(self.settings.train_date),
            "train_no": target.train_no,
            "stationTrainCode": target.train_number,
            "seatType": self.settings.seat_type,
            "fromStationTelecode": target.from_station,
            "toStationTelecode": target.to_station,
            "leftTicket": left_ticket,
            "purpose_codes": "00",
            "train_location": info.get("train_location", target.train_location),
        }

    def confirm_params(self) -> Dict[str, Any]:
        info = self.session.ticket_info
        return {
            "passengerTicketStr": self.passenger_strings.passenger_ticket_str,
            "oldPassengerStr": self.passenger_strings.old_passenger_str,
            "purpose_codes": "00",
            "key_check_isChange": info.get("key_check_isChange", ""),
            "leftTicketStr": info.get("leftTicketStr", ""),
            "train_location": info.get("train_location", ""),
            "choose_seats": "",
            "seatDetailType": "000",
            "is_jy": "N",
            "is_cj": "Y",
            "encryptedData": "",
            "whatsSelect": "1",
            "roomType": "00",
            "dwAll": "N",
        }

    async def _fetch_wait_time(self) -> Dict[str, Any]:
        try:
            return await self.platform.query_order_wait_time(self.session.token)
        except RequestFailed as e:
            logger.warning(f"查询订单状态失败: {e}")
            return {}

    def _on_poll(self, response: Any):
        logger.info(f"订单状态: {response}")
        self._emit("poll", data=response)
