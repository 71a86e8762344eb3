from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional
from datetime import datetime
from decimal import Decimal
from storefront.domain import CartLine, ShippingAddress

# money stays Decimal internally and goes out as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used='json')]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class OrderItemIn(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    color: Optional[str] = None
    size: Optional[str] = None

    def to_cart_line(self) -> CartLine:
        return CartLine(product_id=self.product_id, quantity=self.quantity, color=self.color, size=self.size)

class OrderCreate(CamelModel):
    # any price the client sends is dropped here
    items: List[OrderItemIn] = Field(min_length=1)
    shipping_address: ShippingAddress
    payment_method: str = Field(min_length=1)
    notes: Optional[str] = None

class StatusUpdate(CamelModel):
    status: str

class TrackingUpdate(CamelModel):
    tracking_number: str = Field(min_length=1, max_length=100)

class OrderItemRead(CamelModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    price_at_time: Money
    color: Optional[str] = None
    size: Optional[str] = None

class OrderRead(CamelModel):
    id: str
    buyer_id: str
    order_number: str
    status: str
    total: Money
    shipping_fee: Money
    discount: Money
    payment_method: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    items: List[OrderItemRead] = []
    created_at: datetime
    updated_at: datetime

class OrderPageRead(CamelModel):
    orders: List[OrderRead]
    total: int
    limit: int
    offset: int

class AnalyticsRead(CamelModel):
    total_orders: int
    total_revenue: Money
    average_order_value: Money
    total_products: int
    total_views: int
    conversion_rate: float
