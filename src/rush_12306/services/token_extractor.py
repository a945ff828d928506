"""从 initDc 页面提取 globalRepeatSubmitToken 和 ticketInfoForPassengerForm"""

import logging
import re
from typing import Optional

from ..exceptions import JsLiteralError, TokenExtractionError
from ..models.order import SubmitTokens
from ..utils.js_literal import parse_js_value

logger = logging.getLogger(__name__)

_TOKEN_PATTERNS = [
    # JS变量形式
    re.compile(r"var\s+globalRepeatSubmitToken\s*=\s*['\"]([a-zA-Z0-9]+)['\"]", re.I),
    # 隐藏表单域形式
    re.compile(r"<input[^>]+name=\"globalRepeatSubmitToken\"[^>]+value=\"([^\"]+)\"", re.I),
]
_TICKET_INFO_START = re.compile(r"var\s+ticketInfoForPassengerForm\s*=\s*", re.I)


def extract_submit_token(html: str) -> Optional[str]:
    for pattern in _TOKEN_PATTERNS:
        m = pattern.search(html)
        if m:
            return m.group(1)
    return None


def extract_submit_tokens(html: str) -> SubmitTokens:
    """解析 initDc 返回的HTML；任一字段缺失都抛出 TokenExtractionError"""
    if not html:
        raise TokenExtractionError("initDc 返回内容为空")

    m = _TICKET_INFO_START.search(html)
    if not m:
        raise TokenExtractionError("ticketInfoForPassengerForm 对象未找到")
    try:
        ticket_info, _ = parse_js_value(html, m.end())
    except JsLiteralError as e:
        raise TokenExtractionError(f"ticketInfoForPassengerForm 解析失败: {e}") from e
    if not isinstance(ticket_info, dict) or not ticket_info:
        raise TokenExtractionError("ticketInfoForPassengerForm 不是有效对象")

    token = extract_submit_token(html)
    if not token:
        raise TokenExtractionError("提取失败: globalRepeatSubmitToken 未找到")

    logger.info(f"获取到 globalRepeatSubmitToken: {token}")
    return SubmitTokens(token=token, ticket_info=ticket_info)
