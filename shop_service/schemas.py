from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import MAX_ID


# Catalog
class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

class CategoryCreate(CategoryBase):
    pass

class CategoryOut(CategoryBase):
    id: int

    model_config = {"from_attributes": True}


class ProductBase(BaseModel):
    category_id: int = Field(..., gt=0, le=MAX_ID)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)

class ProductCreate(ProductBase):
    pass

class ProductOut(ProductBase):
    id: int

    model_config = {"from_attributes": True}


# Orders
class OrderItemCreate(BaseModel):
    """A requested line item; ``price`` is the unit price recorded on the order."""
    product_id: int = Field(..., gt=0, le=MAX_ID, description="Product ID")
    quantity: int = Field(..., gt=0, description="Product quantity")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Unit price of product")

class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=100)
    items: List[OrderItemCreate] = Field(..., min_length=1, description="List of order items")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Alice",
                    "items": [{"product_id": 1, "quantity": 4, "price": "9.99"}],
                }
            ]
        }
    }

class OrderCreated(BaseModel):
    order_id: int


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    price: Decimal
    product_name: str

class OrderOut(BaseModel):
    id: int
    customer_name: str
    created_at: datetime
    items: List[OrderItemOut] = []


class ErrorOut(BaseModel):
    error: str
    message: str
    product_id: Optional[int] = None
