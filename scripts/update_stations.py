"""更新车站电报码表（保存到配置的 STATION_FILE）"""

import asyncio
import sys
from pathlib import Path

import aiohttp

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rush_12306.exceptions import RequestFailed
from rush_12306.services.station_service import STATION_JS_URL, StationService
from rush_12306.utils.config import get_settings


async def update_stations() -> int:
    settings = get_settings()
    path = settings.station_file
    print(f"🌐 数据源: {STATION_JS_URL}")
    print(f"💾 保存到: {path}")

    service = StationService(stations=[])
    try:
        count = await service.download_stations(path)
    except (RequestFailed, aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
        print(f"❌ 获取失败: {e}")
        if not Path(path).exists():
            print("❌ 本地车站文件不存在，无法继续。")
            return 1
        print("🔄 使用本地车站文件")
        count = await service.load_stations(path)

    print(f"✅ 共 {count} 个车站，示例：")
    for station in service.stations[:10]:
        print(f"    - {station.name}（{station.code}）")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(update_stations()))
