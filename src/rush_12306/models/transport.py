"""传输层数据模型"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class SessionContext(BaseModel):
    """登录态（Cookie），每次请求后整体替换而不是原地修改"""
    model_config = ConfigDict(frozen=True)

    cookie: str = Field("", description="Cookie头")


class RequestFailure(BaseModel):
    """统一的请求失败信息"""
    code: Union[int, str] = Field(..., description="HTTP状态码或 NETWORK_ERROR")
    message: str = Field("", description="错误信息")
    url: str = Field(..., description="请求地址")
    payload: Optional[Dict[str, Any]] = Field(None, description="请求参数")
    blocked: bool = Field(False, description="是否疑似触发风控（403）")


class TransportResult(BaseModel):
    """一次请求的结果"""
    body: Any = Field(None, description="JSON 或文本响应体")
    failure: Optional[RequestFailure] = Field(None, description="失败信息")
    context: SessionContext = Field(..., description="请求后的登录态")
    set_cookies: List[str] = Field(default_factory=list, description="本次响应下发的 Set-Cookie")

    @property
    def ok(self) -> bool:
        return self.failure is None
