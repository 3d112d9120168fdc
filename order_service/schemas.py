# order_service/schemas.py

"""
Pydantic schemas for the Order Service API.
These define the data structures for incoming requests and outgoing responses,
and the JSON document used by the file storage backend.
Field names are camelCase on the wire.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .domain import Dataset, Order, OrderStatus, Product


class CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# Schema for a product in API responses and in the stored JSON document.
class ProductResponse(CamelModel):
    id: int = Field(..., gt=0, description="Unique identifier of the product.")
    name: str = Field(..., description="Display name of the product.")
    price: float = Field(..., ge=0, description="Unit price. Must be non-negative.")
    stock: int = Field(..., ge=0, description="Units available. Must be non-negative.")


# Schema for an order in API responses and in the stored JSON document.
class OrderResponse(CamelModel):
    id: int = Field(..., gt=0, description="Unique identifier of the order.")
    product_id: int = Field(..., alias="productId", description="Ordered product.")
    quantity: int = Field(..., gt=0, description="Units ordered.")
    total_amount: float = Field(..., alias="totalAmount", description="Price times quantity at creation.")
    status: OrderStatus = Field(..., description="Current lifecycle status.")
    created_at: date = Field(..., alias="createdAt", description="Calendar date the order was placed.")


# Schema for creating an order. Used in POST /orders.
# Fields are optional here so that missing values are reported with the service's own messages.
class OrderCreate(CamelModel):
    product_id: Optional[int] = Field(None, alias="productId", strict=True, description="Product to order.")
    quantity: Optional[int] = Field(None, strict=True, description="Units to order. Must be greater than 0.")


# Schema for advancing an order. Used in PATCH /orders/change-status/{order_id}.
class OrderStatusUpdate(CamelModel):
    status: Optional[str] = Field(None, description="Requested next status.")


class ProductListResponse(BaseModel):
    count: int
    products: List[ProductResponse]


class ProductDetailResponse(BaseModel):
    product: ProductResponse


class OrderListResponse(BaseModel):
    count: int
    orders: List[OrderResponse]


class OrderActionResponse(BaseModel):
    message: str
    order: OrderResponse


class ProductRevenueResponse(CamelModel):
    product_id: int = Field(..., alias="productId")
    product_name: str = Field(..., alias="productName")
    total_revenue: float = Field(..., alias="totalRevenue")
    order_count: int = Field(..., alias="orderCount")


class OverallRevenueResponse(CamelModel):
    total_revenue: float = Field(..., alias="totalRevenue")
    order_count: int = Field(..., alias="orderCount")


class ErrorResponse(BaseModel):
    error: str


# The whole dataset as stored by the JSON backend and read from seed files.
class DatasetDocument(CamelModel):
    products: List[ProductResponse] = Field(default_factory=list)
    orders: List[OrderResponse] = Field(default_factory=list)
    next_order_id: Optional[int] = Field(None, alias="nextOrderId")

    @model_validator(mode="after")
    def check_unique_ids(self):
        for kind, items in (("product", self.products), ("order", self.orders)):
            ids = [item.id for item in items]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate {kind} ids in dataset document.")
        return self

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "DatasetDocument":
        return cls(
            products=[ProductResponse.model_validate(p) for p in dataset.products],
            orders=[OrderResponse.model_validate(o) for o in dataset.orders],
            next_order_id=dataset.next_order_id,
        )

    def to_dataset(self) -> Dataset:
        return Dataset(
            products=[Product(**p.model_dump()) for p in self.products],
            orders=[Order(**o.model_dump()) for o in self.orders],
            next_order_id=self.next_order_id,
        )
