from datetime import date as date_type
from pydantic import BaseModel, Field
from typing import Literal, Optional

OrderStatusValue = Literal["PENDING", "IN_PREPARATION", "READY", "DELIVERED", "CANCELLED"]


class CreateOrderRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusValue
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderQuery(BaseModel):
    status: Optional[OrderStatusValue] = None
    date: Optional[date_type] = None
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)
