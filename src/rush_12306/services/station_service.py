"""车站电报码服务"""

import os
import re
import logging
from typing import Dict, List, Optional

import aiofiles
import aiohttp

from ..exceptions import RequestFailed
from ..models.station import Station
from ..models.transport import RequestFailure

logger = logging.getLogger(__name__)

STATION_JS_URL = "https://kyfw.12306.cn/otn/resources/js/framework/station_name.js"

# 未加载 station_name.js 时使用的常用车站
BUILTIN_STATIONS = {
    "北京": "BJP",
    "上海": "SHH",
    "昆山": "KSH",
    "苏州": "SZH",
    "灌南": "GIU",
    "苏州园区": "KAH",
    "张家港": "ZAU",
}


def _is_code(val: str) -> bool:
    return val.isalpha() and val.isupper() and len(val) == 3


class StationService:
    def __init__(self, stations: Optional[List[Station]] = None):
        self.stations: List[Station] = []
        self._by_name: Dict[str, Station] = {}
        self._by_code: Dict[str, Station] = {}
        self._index(stations if stations is not None else [
            Station(name=name, code=code) for name, code in BUILTIN_STATIONS.items()
        ])

    def _index(self, stations: List[Station]):
        self.stations = stations
        self._by_name = {s.name: s for s in stations}
        self._by_code = {s.code: s for s in stations}

    @staticmethod
    def parse_station_js(content: str) -> List[Station]:
        """
        解析12306原始JS
        每个站的格式：@拼音缩写|车站名|电报码|拼音|简拼|编号|区域码|城市|...
        """
        m = re.search(r"var station_names ?= ?'(.*?)';", content, re.S)
        if not m:
            m = re.search(r"'(@[^']+)';", content)
        if not m:
            logger.error("未能解析到站点JS内容")
            return []
        result = []
        for st in m.group(1).split('@'):
            if not st:
                continue
            parts = st.split('|')
            if len(parts) < 6:
                logger.warning(f"字段数异常，跳过：{st}")
                continue
            name = parts[1].strip()
            code = parts[2].strip()
            if not _is_code(code):
                logger.warning(f"电报码异常，跳过：{st}")
                continue
            result.append(Station(name=name, code=code))
        return result

    async def load_stations(self, path: str) -> int:
        """从 station_name.js 加载车站，文件不存在时保留内置车站"""
        if not os.path.exists(path):
            logger.warning(f"站点文件不存在: {path}，使用内置车站表（{len(self.stations)}个）")
            return len(self.stations)
        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            content = await f.read()
        stations = self.parse_station_js(content)
        if stations:
            self._index(stations)
            logger.info(f"已加载{len(self.stations)}个车站")
        return len(self.stations)

    async def download_stations(self, path: str, url: str = STATION_JS_URL) -> int:
        """下载最新 station_name.js 到 path 并重新加载"""
        logger.info(f"下载车站数据: {url}")
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise RequestFailed(RequestFailure(code=resp.status, message="下载车站数据失败", url=url))
                text = await resp.text(encoding="utf-8", errors="ignore")
        if not self.parse_station_js(text):
            raise RequestFailed(RequestFailure(code=resp.status, message="车站数据格式异常", url=url))

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
            await f.write(text)
        logger.info(f"车站数据已保存: {path}")
        return await self.load_stations(path)

    def get_station_code(self, query: str) -> Optional[str]:
        """车站名或电报码 -> 电报码"""
        if not query:
            return None
        q = query.strip()
        # 兼容“站”
        if q.endswith("站") and len(q) > 2:
            q = q[:-1]
        station = self._by_name.get(q)
        if station:
            return station.code
        if _is_code(q) and q in self._by_code:
            return q
        return None

    def get_station_name(self, code: str) -> Optional[str]:
        station = self._by_code.get(code)
        return station.name if station else None
