"""HTTP客户端服务"""

import logging
import random
from typing import Any, Dict, Iterable, Optional

import httpx

from ..models.transport import RequestFailure, SessionContext, TransportResult
from ..utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

BASE_URL = "https://kyfw.12306.cn/otn"
DEFAULT_REFERER = f"{BASE_URL}/leftTicket/init"

_BROWSERS = [
    ("Chrome", ["117.0.0.0", "116.0.0.0"], ["Windows NT 10.0", "Macintosh"]),
    ("Firefox", ["118.0", "117.0"], ["Windows NT 10.0"]),
]


def generate_random_ua() -> str:
    """随机生成 User-Agent"""
    name, versions, platforms = random.choice(_BROWSERS)
    return (f"Mozilla/5.0 ({random.choice(platforms)}) AppleWebKit/537.36 "
            f"(KHTML, like Gecko) {name}/{random.choice(versions)} Safari/537.36")


def merge_cookies(old_cookie: str, set_cookies: Iterable[str]) -> str:
    """把 Set-Cookie 合并进已有的 Cookie 串，同名覆盖"""
    cookies: Dict[str, str] = {}
    for pair in old_cookie.split(";"):
        key, _, value = pair.strip().partition("=")
        if key:
            cookies[key] = value
    for header in set_cookies:
        key, _, value = header.split(";", 1)[0].strip().partition("=")
        if key:
            cookies[key] = value
    return "; ".join(f"{k}={v}" for k, v in cookies.items())


class HttpClient:
    """12306 HTTP客户端

    不保存登录态：每次请求传入 SessionContext，结果里带回（可能更新过的）SessionContext。
    """

    def __init__(self, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self.transport = transport
        self.session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.create_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_session()

    async def create_session(self):
        """创建HTTP会话"""
        headers = {
            'Accept': 'application/json, text/javascript, */*; q=0.01',
            'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
            'Accept-Encoding': 'gzip, deflate, br',
            'Connection': 'keep-alive',
            'X-Requested-With': 'XMLHttpRequest',
            'Cache-Control': 'no-cache',
            'Pragma': 'no-cache'
        }

        self.session = httpx.AsyncClient(
            headers=headers,
            timeout=self.settings.request_timeout,
            verify=False,  # 12306证书问题
            follow_redirects=True,
            transport=self.transport
        )

    async def close_session(self):
        """关闭HTTP会话"""
        if self.session:
            await self.session.aclose()
            self.session = None

    def _headers(self, context: SessionContext, referer: Optional[str]) -> Dict[str, str]:
        user_agent = generate_random_ua() if self.settings.random_user_agent else self.settings.user_agent
        return {
            'User-Agent': user_agent,
            'Referer': referer or DEFAULT_REFERER,
            'Cookie': context.cookie,
        }

    async def request(self, method: str, url: str, context: SessionContext,
                      data: Optional[Dict[str, Any]] = None,
                      referer: Optional[str] = None,
                      as_text: bool = False) -> TransportResult:
        """发送请求；网络错误和非2xx状态都转换为 RequestFailure，不向上抛出"""
        if not self.session:
            await self.create_session()
        assert self.session is not None  # 类型保证

        headers = self._headers(context, referer)
        logger.info(f"发送{method.upper()}请求: {url}")
        try:
            if method.lower() == "get":
                response = await self.session.get(url, params=data, headers=headers)
            else:
                response = await self.session.post(url, data=data or {}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 403:
                logger.error("触发风控，建议更换IP或Cookie")
            failure = RequestFailure(code=status, message=str(e), url=url,
                                     payload=data, blocked=status == 403)
            logger.error(f"请求失败: {failure.model_dump_json()}")
            return TransportResult(failure=failure, context=context)
        except httpx.RequestError as e:
            failure = RequestFailure(code="NETWORK_ERROR", message=str(e) or e.__class__.__name__,
                                     url=url, payload=data)
            logger.error(f"请求失败: {failure.model_dump_json()}")
            return TransportResult(failure=failure, context=context)

        set_cookies = response.headers.get_list("set-cookie")
        if set_cookies:
            context = SessionContext(cookie=merge_cookies(context.cookie, set_cookies))
            logger.info("Cookie 已更新")

        if as_text:
            return TransportResult(body=response.text, context=context, set_cookies=set_cookies)
        try:
            body = response.json()
        except ValueError:
            failure = RequestFailure(code=response.status_code, message="响应不是JSON",
                                     url=url, payload=data)
            logger.error(f"12306响应解析失败: {response.text[:200]}")
            return TransportResult(failure=failure, context=context, set_cookies=set_cookies)
        return TransportResult(body=body, context=context, set_cookies=set_cookies)
