from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class ProductRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category_id: int
    image_url: Optional[str] = None
    is_available: bool = True
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", "price", "category_id", "is_available", mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class AvailabilityRequest(BaseModel):
    is_available: bool


class ProductQuery(BaseModel):
    category_id: Optional[int] = None
    search: Optional[str] = None
    available: Optional[bool] = None
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)


class CategoryRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    image_url: Optional[str] = None


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "is_active", mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ReorderCategoriesRequest(BaseModel):
    ids: List[int] = Field(min_length=1)
