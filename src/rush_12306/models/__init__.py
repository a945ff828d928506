"""数据模型包"""

from .station import Station
from .train import SeatTypes, Train, RankedTrain, SelectionResult
from .passenger import Passenger, PassengerStrings
from .transport import SessionContext, RequestFailure, TransportResult
from .order import (
    OrderState,
    WaitlistState,
    SubmitTokens,
    OrderSession,
    WaitlistPlan,
    PipelineEvent,
    PipelineResult,
)

__all__ = [
    "Station",
    "SeatTypes",
    "Train",
    "RankedTrain",
    "SelectionResult",
    "Passenger",
    "PassengerStrings",
    "SessionContext",
    "RequestFailure",
    "TransportResult",
    "OrderState",
    "WaitlistState",
    "SubmitTokens",
    "OrderSession",
    "WaitlistPlan",
    "PipelineEvent",
    "PipelineResult",
]
