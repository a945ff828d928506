import asyncio
import logging
import sys
from typing import Optional

from .exceptions import Rush12306Error, SchedulerError
from .models.order import PipelineResult
from .models.transport import SessionContext
from .services.http_client import HttpClient
from .services.order_pipeline import OrderPipeline
from .services.passenger_service import PassengerService, build_passenger_strings
from .services.platform_client import PlatformClient
from .services.station_service import StationService
from .utils.config import Settings, get_settings
from .utils.precision_timer import PrecisionScheduler

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


async def run(settings: Settings, http_client: Optional[HttpClient] = None,
              scheduler: Optional[PrecisionScheduler] = None) -> Optional[PipelineResult]:
    """验证登录态 -> 获取乘客 -> 等待放票 -> 下单（或候补）"""
    errors = settings.validate_run()
    if errors:
        logger.error("❌ 参数验证失败:\n" + "\n".join(f"{i+1}. {err}" for i, err in enumerate(errors)))
        return None

    station_service = StationService()
    await station_service.load_stations(settings.station_file)

    async with (http_client or HttpClient(settings)) as client:
        platform = PlatformClient(client, SessionContext(cookie=settings.cookie))
        try:
            # 1. 验证Cookie
            if not await platform.check_user():
                logger.error("❌ Cookie已失效")
                return None
            logger.info("Cookie有效")

            # 2. 获取乘客信息
            passengers = await PassengerService(platform).fetch_passengers(settings.passengers)
            if not passengers:
                logger.error("❌ 未找到指定乘客")
                return None
            passenger_strings = build_passenger_strings(settings.seat_type, passengers)
            logger.info(f"乘客: {', '.join(p.passenger_name for p in passengers)}")

            # 3. 等待放票
            target = settings.target_instant()
            if target is None:
                logger.warning("未配置放票时间，立即开始")
            else:
                await (scheduler or PrecisionScheduler.from_settings(settings)).wait_until(target)
                logger.info("⏰ 时间到！")
        except SchedulerError as e:
            logger.error(f"❌ {e}")
            return None
        except Rush12306Error as e:
            logger.error(f"❌ 流程中断: {e}")
            return None

        # 4. 下单
        pipeline = OrderPipeline(platform, settings, passenger_strings, station_service)
        result = await pipeline.run()
        await platform.drain()
        return result


async def main_async() -> int:
    settings = get_settings()
    setup_logging(settings)
    logger.info("🚀 启动12306抢票...")
    result = await run(settings)
    if result is None or not result.succeeded:
        return 1
    return 0


def main():
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
