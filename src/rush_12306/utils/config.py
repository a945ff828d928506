"""配置管理"""

import logging
from datetime import datetime
from typing import List, Optional
from pathlib import Path

import pytz
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from .date_utils import validate_date

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """抢票配置（进程启动时加载一次，之后只读）"""
    # 登录态
    cookie: str = Field(default="", description="手动登录后复制的Cookie")

    # 抢票目标
    from_station: str = Field(default="", description="出发站名称")
    to_station: str = Field(default="", description="到达站名称")
    train_date: str = Field(default="", description="出发日期 (YYYY-MM-DD)")
    train_number: str = Field(default="", description="首选车次号，如 D2913")
    passengers: List[str] = Field(default_factory=list, description="乘客姓名列表")
    seat_type: str = Field(default="O", description="座位类型（O=二等座，M=一等座，9=商务座）")
    target_time: Optional[datetime] = Field(default=None, description="放票时间点")
    timezone: str = Field(default="Asia/Shanghai", description="target_time 不带时区时使用的时区")
    hb_immediately: bool = Field(default=False, description="是否直接候补")

    # 网络
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="用户代理字符串"
    )
    random_user_agent: bool = Field(default=True, description="每次请求随机生成User-Agent")
    request_timeout: float = Field(default=10, description="请求超时时间（秒）")
    log_level: str = Field(default="INFO", description="日志级别")

    # 定时与轮询
    poll_interval: float = Field(default=3.0, description="排队轮询间隔（秒）")
    coarse_margin_ms: float = Field(default=50, description="粗等待阶段提前量（毫秒）")
    spin_threshold_ms: float = Field(default=10, description="进入忙等待的阈值（毫秒）")
    spin_enabled: bool = Field(default=True, description="最后阶段是否忙等待")

    # 车站
    station_file: str = Field(default="src/rush_12306/resources/station_name.js", description="12306车站JS文件路径")

    # 候补
    waitlist_submit_delay: float = Field(default=1.0, description="提交候补订单后等待时间（秒）")
    waitlist_accept_no_seat: bool = Field(default=False, description="候补是否接受无座")
    waitlist_limit_minutes: int = Field(default=360, description="截止兑现时间：开车前多少分钟")
    waitlist_train_time: str = Field(default="0817", description="接受新增列车的时间段（早8点到下午5点）")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True
    )

    def target_instant(self) -> Optional[datetime]:
        """带时区的放票时间"""
        if self.target_time is None:
            return None
        if self.target_time.tzinfo is None:
            return pytz.timezone(self.timezone).localize(self.target_time)
        return self.target_time

    def validate_run(self) -> List[str]:
        """检查抢票必填项，返回错误列表"""
        errors = []
        if not self.cookie:
            errors.append("Cookie不能为空")
        if not self.from_station:
            errors.append("出发站不能为空")
        if not self.to_station:
            errors.append("到达站不能为空")
        if not self.train_date:
            errors.append("出发日期不能为空")
        elif not validate_date(self.train_date):
            errors.append("日期格式错误，请使用 YYYY-MM-DD 格式")
        if not self.passengers:
            errors.append("乘客列表不能为空")
        try:
            pytz.timezone(self.timezone)
        except pytz.exceptions.UnknownTimeZoneError:
            errors.append(f"未知时区: {self.timezone}")
        return errors


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """获取配置实例"""
    global _settings
    if _settings is None:
        env_file_path = Path(".env")
        if not env_file_path.exists():
            logger.warning(f"环境配置文件 {env_file_path.absolute()} 不存在，使用环境变量和默认配置")
        else:
            logger.info(f"加载环境配置文件: {env_file_path.absolute()}")

        try:
            _settings = Settings()
            logger.info(f"配置加载成功 - {_settings.from_station} → {_settings.to_station} ({_settings.train_date}), 车次: {_settings.train_number}, 席别: {_settings.seat_type}")
        except Exception as e:
            logger.error(f"配置加载失败: {e}，使用默认配置")
            _settings = Settings.model_validate({})

    return _settings
