"""异常定义"""

from typing import Any, Optional


class Rush12306Error(Exception):
    """所有抢票流程异常的基类"""


class SchedulerError(Rush12306Error):
    """定时器参数错误（目标时间已过）"""


class StationNotFoundError(Rush12306Error):
    """车站名称无法解析为电报码"""


class NoTrainsError(Rush12306Error):
    """余票查询结果为空"""


class TrainSelectionError(Rush12306Error):
    """没有可选车次"""


class RequestFailed(Rush12306Error):
    """传输层失败，携带结构化的失败信息"""

    def __init__(self, failure: Any):
        self.failure = failure
        super().__init__(f"请求失败[{failure.code}]: {failure.message} ({failure.url})")


class JsLiteralError(Rush12306Error):
    """JS对象字面量解析失败"""

    def __init__(self, message: str, fragment: str = "", position: int = -1):
        self.fragment = fragment
        self.position = position
        super().__init__(f"{message} @ {position}: {fragment!r}")


class TokenExtractionError(Rush12306Error):
    """initDc 页面中缺少 token 或 ticketInfoForPassengerForm"""


class PipelineAbort(Rush12306Error):
    """状态机中的致命错误，终止本次流程"""

    def __init__(self, message: str, state: Optional[str] = None):
        self.state = state
        super().__init__(message)
