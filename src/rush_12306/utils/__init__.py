"""工具包"""

from .config import get_settings
from .date_utils import format_date, validate_date
from .precision_timer import PrecisionScheduler, busy_wait_until
from .js_literal import parse_js_object

__all__ = [
    "get_settings",
    "format_date",
    "validate_date",
    "PrecisionScheduler",
    "busy_wait_until",
    "parse_js_object",
]
