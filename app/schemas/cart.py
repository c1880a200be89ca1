from pydantic import BaseModel, Field
from typing import Optional


class AddCartItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    notes: Optional[str] = Field(default=None, max_length=500)


class UpdateCartItemRequest(BaseModel):
    # Zero or a negative quantity removes the line
    quantity: int
    notes: Optional[str] = Field(default=None, max_length=500)
