"""Pydantic models describing Product payloads."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    unit_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    quantity: int = Field(0, ge=0)
    description: str | None = None
    image_path: str | None = None


class ProductCreate(ProductBase):
    """Schema for form-created product rows."""

    product_code: str = Field(..., min_length=1, max_length=64, description="Unique business key")


class ProductUpdate(BaseModel):
    """Partial update. Omitted fields are left alone; only the optional text
    fields may be cleared with an explicit null."""

    name: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(None, min_length=1, max_length=100)
    unit_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    quantity: int | None = Field(None, ge=0)
    description: str | None = None
    image_path: str | None = None

    @field_validator("name", "category", "unit_price", "quantity")
    @classmethod
    def reject_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("may not be null")
        return v


class ProductRead(ProductBase):
    id: int
    owner_id: int
    product_code: str
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    items: list[ProductRead]
    total: int


class InventoryStats(BaseModel):
    total_products: int
    low_stock_count: int
    low_stock_threshold: int
