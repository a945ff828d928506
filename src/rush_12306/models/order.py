"""下单与候补流程的数据模型"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from .train import RankedTrain


class OrderState(str, Enum):
    """普通下单状态机"""
    IDLE = "idle"
    TICKETS_QUERIED = "tickets_queried"
    TRAIN_SELECTED = "train_selected"
    ORDER_REQUESTED = "order_requested"
    SESSION_INITIALIZED = "session_initialized"
    ORDER_VERIFIED = "order_verified"
    QUEUE_JOINED = "queue_joined"
    QUEUE_CONFIRMED = "queue_confirmed"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    WAITLISTED = "waitlisted"


class WaitlistState(str, Enum):
    """候补状态机"""
    IDLE = "idle"
    ELIGIBILITY_CHECKED = "eligibility_checked"
    WAITLIST_ORDER_SUBMITTED = "waitlist_order_submitted"
    WAITLIST_CONFIRMED = "waitlist_confirmed"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmitTokens(BaseModel):
    """initDc 页面中提取的字段"""
    token: str = Field(..., description="globalRepeatSubmitToken")
    ticket_info: Dict[str, Any] = Field(..., description="ticketInfoForPassengerForm")


class OrderSession(BaseModel):
    """贯穿下单状态机的可变状态"""
    target: Optional[RankedTrain] = None
    token: Optional[str] = None
    ticket_info: Dict[str, Any] = Field(default_factory=dict)
    queue_count: Dict[str, Any] = Field(default_factory=dict)
    confirm_result: Dict[str, Any] = Field(default_factory=dict)


class WaitlistPlan(BaseModel):
    """候补计划：除目标车次外的其他车次作为备选"""
    model_config = ConfigDict(frozen=True)

    plans: str = Field("", description="备选车次，secretStr,席别# 拼接")
    secret_list: str = Field(..., description="目标车次，secretStr#席别|")


class PipelineEvent(BaseModel):
    """状态机事件"""
    kind: str = Field(..., description="transition / waitlist_entry / poll / abort / success")
    state: str = Field(..., description="事件发生时的状态")
    message: str = Field("", description="说明")
    data: Any = Field(None, description="附带数据")


class PipelineResult(BaseModel):
    """一次流程的最终结果"""
    branch: str = Field(..., description="order 或 waitlist")
    succeeded: bool = Field(False, description="是否成功")
    state: str = Field(..., description="终止状态")
    order_id: Optional[str] = Field(None, description="订单号")
    reserve_no: Optional[str] = Field(None, description="候补订单号")
    error: Optional[str] = Field(None, description="失败原因")
    target: Optional[RankedTrain] = Field(None, description="目标车次")
