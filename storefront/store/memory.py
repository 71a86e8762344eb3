"""In-process catalog and order store.

Used by the service-layer tests. Same contract as the SQL implementations,
including stock reservation inside the create.
"""
from __future__ import annotations

import copy
import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from storefront.core.errors import BusinessRuleError
from storefront.domain import LineItem, Order, OrderDraft, Product, utcnow


class MemoryCatalog:
    def __init__(self, products=()):
        self._products: dict[str, Product] = {}
        self._lock = threading.Lock()
        for p in products:
            self.put(p)

    def put(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def reserve(self, reservations: list[tuple[str, int]]) -> None:
        """Decrement stock for every (product_id, qty) or for none of them."""
        with self._lock:
            remaining = dict((pid, p.stock_quantity) for pid, p in self._products.items())
            for pid, qty in reservations:
                product = self._products.get(pid)
                if product is None or not product.is_active or remaining[pid] < qty:
                    raise BusinessRuleError(f'Insufficient stock for product {pid}')
                remaining[pid] -= qty
            for pid, _ in reservations:
                self._products[pid] = replace(self._products[pid], stock_quantity=remaining[pid])


class MemoryOrderStore:
    def __init__(self, catalog: MemoryCatalog, clock: Callable[[], datetime] = utcnow):
        self._catalog = catalog
        self._clock = clock
        self._orders: dict[str, Order] = {}
        self._seq = itertools.count()
        self._order_seq: dict[str, int] = {}
        self._lock = threading.Lock()

    def create_with_items(self, draft: OrderDraft) -> str:
        now = self._clock()
        with self._lock:
            self._catalog.reserve([(it.product_id, it.quantity) for it in draft.items])
            order_id = str(uuid.uuid4())
            items = [
                LineItem(
                    id=str(uuid.uuid4()), order_id=order_id, product_id=it.product_id,
                    quantity=it.quantity, price_at_time=it.price_at_time, created_at=now,
                    color=it.color, size=it.size,
                )
                for it in draft.items
            ]
            self._orders[order_id] = Order(
                id=order_id,
                order_number='ORD-' + uuid.uuid4().hex[:8].upper(),
                buyer_id=draft.buyer_id,
                status=draft.status,
                total=draft.total,
                created_at=now,
                updated_at=now,
                shipping_fee=draft.shipping_fee,
                discount=draft.discount,
                payment_method=draft.payment_method,
                shipping_address=draft.shipping_address,
                notes=draft.notes,
                items=items,
            )
            self._order_seq[order_id] = next(self._seq)
        return order_id

    def _project(self, order: Order) -> Order:
        out = copy.deepcopy(order)
        for it in out.items:
            product = self._catalog.get(it.product_id)
            if product:
                it.product_name = product.name
                it.seller_id = product.seller_id
        return out

    def get_by_id(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return self._project(order) if order else None

    def _page(self, matches, limit: int, offset: int) -> tuple[list[Order], int]:
        with self._lock:
            found = [o for o in self._orders.values() if matches(o)]
            found.sort(key=lambda o: (o.created_at, self._order_seq[o.id]), reverse=True)
            return [self._project(o) for o in found[offset:offset + limit]], len(found)

    def get_by_buyer(self, buyer_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        return self._page(lambda o: o.buyer_id == buyer_id, limit, offset)

    def get_by_seller(self, seller_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        def sold(order):
            return any(
                (p := self._catalog.get(it.product_id)) is not None and p.seller_id == seller_id
                for it in order.items
            )
        return self._page(sold, limit, offset)

    def update_status(self, order_id: str, status: str, expected_status: Optional[str] = None) -> bool:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or (expected_status is not None and order.status != expected_status):
                return False
            order.status = status
            order.updated_at = self._clock()
            return True

    def set_tracking_number(self, order_id: str, tracking_number: str) -> bool:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return False
            order.tracking_number = tracking_number
            order.updated_at = self._clock()
            return True
