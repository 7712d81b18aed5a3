# models/schemas/product.py
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import TimestampModel


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    varieties: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    pass


class Product(ProductBase, TimestampModel):
    id: str
    active: bool
