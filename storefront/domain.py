"""Order domain: statuses, transitions and the records the stores exchange."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CENTS = Decimal('0.01')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class ShippingAddress(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    street: str
    number: str = ''
    complement: Optional[str] = None
    neighborhood: str = ''
    city: str
    state: str
    postal_code: str
    country: Optional[str] = None
    recipient: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class Product:
    """Catalog view of a product as read at order time."""

    id: str
    seller_id: str
    name: str
    price: Decimal
    stock_quantity: int
    is_active: bool = True


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    color: Optional[str] = None
    size: Optional[str] = None


@dataclass
class LineItemDraft:
    product_id: str
    quantity: int
    price_at_time: Decimal
    color: Optional[str] = None
    size: Optional[str] = None


@dataclass
class OrderDraft:
    buyer_id: str
    total: Decimal
    items: list[LineItemDraft]
    status: str = OrderStatus.PENDING.value
    shipping_fee: Decimal = Decimal('0')
    discount: Decimal = Decimal('0')
    payment_method: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    notes: Optional[str] = None


@dataclass
class LineItem:
    id: str
    order_id: str
    product_id: str
    quantity: int
    price_at_time: Decimal
    created_at: datetime
    color: Optional[str] = None
    size: Optional[str] = None
    # joined from the catalog for presentation, never stored on the item
    product_name: Optional[str] = None
    seller_id: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return self.price_at_time * self.quantity


@dataclass
class Order:
    id: str
    order_number: str
    buyer_id: str
    status: str
    total: Decimal
    created_at: datetime
    updated_at: datetime
    shipping_fee: Decimal = Decimal('0')
    discount: Decimal = Decimal('0')
    payment_method: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    items: list[LineItem] = field(default_factory=list)

    def sold_by(self, seller_id: str) -> bool:
        return any(it.seller_id == seller_id for it in self.items)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, decoded at the edge from a bearer token."""

    subject: str
    role: str = 'customer'

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @property
    def is_seller(self) -> bool:
        return self.role == 'seller'

    def can_see(self, order: Order) -> bool:
        if self.is_admin or order.buyer_id == self.subject:
            return True
        return self.is_seller and order.sold_by(self.subject)
