"""乘客数据模型"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Passenger(BaseModel):
    """getPassengerDTOs 返回的常用联系人"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    passenger_name: str = Field(..., description="姓名")
    passenger_id_no: str = Field("", description="证件号码")
    passenger_id_type_code: str = Field("1", description="证件类型")
    mobile_no: str = Field("", description="手机号")
    all_enc_str: str = Field("", alias="allEncStr", description="服务端下发的加密串")
    passenger_type: str = Field("1", description="乘客类型（1=成人）")

    @field_validator("passenger_id_no", "mobile_no", "all_enc_str", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("passenger_id_type_code", "passenger_type", mode="before")
    @classmethod
    def none_to_default(cls, v):
        return "1" if v is None else v


class PassengerStrings(BaseModel):
    """下单和候补接口需要的乘客串"""
    model_config = ConfigDict(frozen=True)

    passenger_ticket_str: str = Field(..., description="passengerTicketStr")
    old_passenger_str: str = Field(..., description="oldPassengerStr")
    after_nate_passenger_info: str = Field(..., description="候补 passengerInfo")
