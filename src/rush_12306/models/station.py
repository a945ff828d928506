"""车站数据模型"""

from pydantic import BaseModel, Field


class Station(BaseModel):
    """车站信息模型"""
    name: str = Field(..., description="车站名称")
    code: str = Field(..., description="电报码")
