"""候补下单流程"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import PipelineAbort, Rush12306Error, RequestFailed
from ..models.order import PipelineEvent, PipelineResult, WaitlistPlan, WaitlistState
from ..models.train import RankedTrain, Train
from ..utils.config import Settings
from ..utils.date_utils import to_compact_date
from .platform_client import PlatformClient
from .queue_poller import PollStatus, QueuePoller

logger = logging.getLogger(__name__)

# 候补队列失败状态码
WAITLIST_FAILED_STATUS = 2


def build_waitlist_plan(seat_type: str, trains: List[Train], target: Train) -> WaitlistPlan:
    """除目标车次外的其他车次全部加入候补计划，目标车次作为必选的第一个候补"""
    plans = "".join(
        f"{t.secret_str},{seat_type}#"
        for t in trains
        if t.secret_str != target.secret_str
    )
    return WaitlistPlan(plans=plans, secret_list=f"{target.secret_str}#{seat_type}|")


def classify_waitlist_queue(response: Dict[str, Any]) -> Tuple[PollStatus, Optional[str]]:
    if response.get("status") == WAITLIST_FAILED_STATUS:
        return PollStatus.FAILED, None
    reserve_no = response.get("reserve_no")
    if reserve_no:
        return PollStatus.SUCCEEDED, str(reserve_no)
    return PollStatus.WAITING, None


class WaitlistPipeline:
    """候补状态机：资格校验 -> 提交候补 -> 确认候补 -> 轮询候补队列"""

    def __init__(self, platform: PlatformClient, settings: Settings,
                 poller: Optional[QueuePoller] = None,
                 on_event: Optional[Callable[[PipelineEvent], None]] = None,
                 cancel: Optional[asyncio.Event] = None):
        self.platform = platform
        self.settings = settings
        self.poller = poller or QueuePoller(settings.poll_interval)
        self.on_event = on_event
        self.cancel = cancel
        self.state = WaitlistState.IDLE
        self.events: List[PipelineEvent] = []

    def _emit(self, kind: str, message: str = "", data: Any = None):
        event = PipelineEvent(kind=kind, state=self.state.value, message=message, data=data)
        self.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    def _transition(self, state: WaitlistState, message: str = ""):
        logger.info(f"[候补] {self.state.value} -> {state.value} {message}")
        self.state = state
        self._emit("transition", message)

    def confirm_params(self, plan: WaitlistPlan, passenger_info: str) -> Dict[str, Any]:
        return {
            "passengerInfo": passenger_info,
            "jzParam": "",
            "hbTrain": "",
            "lkParam": "",
            "sessionId": "",
            "sig": "",
            "scene": "nc_login",
            "encryptedData": "",
            "if_receive_wseat": "Y" if self.settings.waitlist_accept_no_seat else "N",
            "realize_limit_time_diff": str(self.settings.waitlist_limit_minutes),
            "plans": plan.plans,
            "tmp_train_date": to_compact_date(self.settings.train_date) + "#",
            "tmp_train_time": self.settings.waitlist_train_time + "#",
            "add_train_flag": "Y",
            "add_train_seat_type_code": "",
        }

    async def run(self, plan: WaitlistPlan, passenger_info: str,
                  target: Optional[RankedTrain] = None) -> PipelineResult:
        try:
            return await self._run(plan, passenger_info, target)
        except Rush12306Error as e:
            logger.error(f"❌ 候补流程中断: {e}")
            failed_at = self.state.value
            self.state = WaitlistState.FAILED
            self._emit("abort", str(e), {"failed_at": failed_at})
            return PipelineResult(branch="waitlist", succeeded=False, state=self.state.value,
                                  error=str(e), target=target)

    async def _run(self, plan: WaitlistPlan, passenger_info: str,
                   target: Optional[RankedTrain]) -> PipelineResult:
        # 1. 校验候补资格
        face = await self.platform.check_waitlist_face(plan.secret_list)
        if not face.get("login_flag") or not face.get("face_flag"):
            raise PipelineAbort("校验候补资格失败", self.state.value)
        self._transition(WaitlistState.ELIGIBILITY_CHECKED)

        # 2. 提交候补订单
        submitted = await self.platform.submit_waitlist_order(plan.secret_list)
        if not submitted.get("flag"):
            raise PipelineAbort("提交候补订单失败", self.state.value)
        self._transition(WaitlistState.WAITLIST_ORDER_SUBMITTED)

        if self.settings.waitlist_submit_delay > 0:
            await asyncio.sleep(self.settings.waitlist_submit_delay)
        self.platform.basedata_log_background("hb")

        # 3. 确认候补
        confirmed = await self.platform.confirm_waitlist(self.confirm_params(plan, passenger_info))
        if not confirmed.get("flag"):
            raise PipelineAbort(f"确认候补失败: {confirmed.get('msg', '')}", self.state.value)
        self._transition(WaitlistState.WAITLIST_CONFIRMED)

        # 4. 轮询候补队列
        self._transition(WaitlistState.POLLING)
        outcome = await self.poller.poll(self._fetch_queue, classify_waitlist_queue,
                                         on_response=self._on_poll, cancel=self.cancel)
        if outcome.succeeded:
            self.state = WaitlistState.SUCCEEDED
            logger.info(f"✅ 候补下单成功，订单号{outcome.marker}，请手动完成支付！")
            self._emit("success", "候补下单成功", {"reserve_no": outcome.marker})
            return PipelineResult(branch="waitlist", succeeded=True, state=self.state.value,
                                  reserve_no=outcome.marker, target=target)

        self.state = WaitlistState.FAILED
        logger.error(f"候补下单失败: {outcome.status.value}")
        self._emit("abort", "候补下单失败", {"poll_status": outcome.status.value})
        return PipelineResult(branch="waitlist", succeeded=False, state=self.state.value,
                              error=f"候补下单失败: {outcome.status.value}", target=target)

    async def _fetch_queue(self) -> Dict[str, Any]:
        try:
            return await self.platform.query_waitlist_queue()
        except RequestFailed as e:
            logger.warning(f"候补队列查询失败，继续等待: {e}")
            return {}

    def _on_poll(self, response: Any):
        logger.info(f"候补队列: {response}")
        self._emit("poll", data=response)
