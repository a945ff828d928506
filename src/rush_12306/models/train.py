"""车次数据模型"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SeatTypes(BaseModel):
    """各席别余票状态（“有”、数字或“无”）"""
    model_config = ConfigDict(frozen=True)

    business: str = Field("", description="商务座")
    first: str = Field("", description="一等座")
    second: str = Field("", description="二等座")


class Train(BaseModel):
    """余票查询得到的一趟车次"""
    model_config = ConfigDict(frozen=True)

    secret_str: str = Field(..., description="加密字符串（下单必需）")
    train_no: str = Field(..., description="列车内部编号")
    train_number: str = Field(..., description="车次号（如G101）")
    from_station: str = Field(..., description="出发站电报码")
    to_station: str = Field(..., description="到达站电报码")
    start_time: str = Field("", description="发车时间")
    arrive_time: str = Field("", description="到达时间")
    seat_types: SeatTypes = Field(default_factory=SeatTypes, description="座位余票状态")
    train_location: str = Field("", description="列车位置码（下单必需）")


class RankedTrain(Train):
    """带优先级的车次"""
    priority: int = Field(..., description="优先级：3=有票，2=有余票数，1=无票")
    is_config_train: bool = Field(False, description="是否为配置的首选车次")
    random_factor: int = Field(0, description="同级车次的随机打散因子")


class SelectionResult(BaseModel):
    """选车结果"""
    ranked: List[RankedTrain] = Field(default_factory=list, description="排序后的全部车次")
    target: Optional[RankedTrain] = Field(None, description="优先级最高的车次")

    @property
    def all_exhausted(self) -> bool:
        return all(t.priority == 1 for t in self.ranked)
