"""日期工具"""

from datetime import datetime, date
from typing import Union
import re


def format_date(dt: Union[datetime, date, str]) -> str:
    """格式化日期为YYYY-MM-DD格式"""
    if isinstance(dt, str):
        # 尝试解析字符串日期
        try:
            dt = datetime.strptime(dt, "%Y-%m-%d").date()
        except ValueError:
            try:
                dt = datetime.strptime(dt, "%Y/%m/%d").date()
            except ValueError:
                raise ValueError(f"无法解析日期格式: {dt}")
    elif isinstance(dt, datetime):
        dt = dt.date()

    return dt.strftime("%Y-%m-%d")


def validate_date(date_str: str) -> bool:
    """验证日期格式"""
    pattern = r'^\d{4}-\d{2}-\d{2}$'
    if not re.match(pattern, date_str):
        return False

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except ValueError:
        return False


_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def to_gmt_string(date_str: str) -> str:
    """getQueueCount 要求的日期格式，如 Fri, 07 Feb 2025 00:00:00 GMT"""
    d = datetime.strptime(format_date(date_str), "%Y-%m-%d").date()
    # 不用 strftime("%a %b")，避免受本地化影响
    return f"{_WEEKDAYS[d.weekday()]}, {d.day:02d} {_MONTHS[d.month - 1]} {d.year} 00:00:00 GMT"


def to_compact_date(date_str: str) -> str:
    """YYYY-MM-DD -> YYYYMMDD"""
    return format_date(date_str).replace("-", "")
