"""服务层包"""

from .http_client import HttpClient
from .platform_client import PlatformClient
from .station_service import StationService
from .ticket_service import TicketService
from .passenger_service import PassengerService, build_passenger_strings
from .token_extractor import extract_submit_tokens
from .train_selector import TrainSelector
from .queue_poller import QueuePoller, PollStatus, PollOutcome
from .waitlist_pipeline import WaitlistPipeline, build_waitlist_plan
from .order_pipeline import OrderPipeline

__all__ = [
    "HttpClient",
    "PlatformClient",
    "StationService",
    "TicketService",
    "PassengerService",
    "build_passenger_strings",
    "extract_submit_tokens",
    "TrainSelector",
    "QueuePoller",
    "PollStatus",
    "PollOutcome",
    "WaitlistPipeline",
    "build_waitlist_plan",
    "OrderPipeline",
]
