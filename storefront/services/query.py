from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storefront.core.errors import NotFoundError
from storefront.domain import Identity, Order
from storefront.store.base import OrderStore

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def normalize_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    """Page size <= 0 falls back to the default, anything above the cap is clamped."""
    if not limit or limit <= 0:
        limit = DEFAULT_LIMIT
    limit = min(limit, MAX_LIMIT)
    offset = max(offset or 0, 0)
    return limit, offset


@dataclass
class OrderPage:
    orders: list[Order]
    total: int
    limit: int
    offset: int


class OrderQuery:
    def __init__(self, store: OrderStore):
        self._store = store

    def get_order(self, order_id: str, identity: Optional[Identity] = None) -> Order:
        """Point lookup. With an identity, orders it may not see read as missing."""
        order = self._store.get_by_id(order_id)
        if order is None or (identity is not None and not identity.can_see(order)):
            raise NotFoundError(f'Order not found: {order_id}')
        return order

    def buyer_orders(self, buyer_id: str, limit: Optional[int] = None, offset: Optional[int] = None) -> OrderPage:
        limit, offset = normalize_page(limit, offset)
        orders, total = self._store.get_by_buyer(buyer_id, limit, offset)
        return OrderPage(orders=orders, total=total, limit=limit, offset=offset)

    def seller_orders(self, seller_id: str, limit: Optional[int] = None, offset: Optional[int] = None) -> OrderPage:
        limit, offset = normalize_page(limit, offset)
        orders, total = self._store.get_by_seller(seller_id, limit, offset)
        return OrderPage(orders=orders, total=total, limit=limit, offset=offset)
