"""Capability interfaces the services depend on.

``SqlOrderStore``/``SqlProductCatalog`` back them in production and
``MemoryOrderStore``/``MemoryCatalog`` in tests.
"""
from __future__ import annotations

from typing import Optional, Protocol

from storefront.domain import Order, OrderDraft, Product


class ProductCatalog(Protocol):
    def get(self, product_id: str) -> Optional[Product]:
        ...


class OrderStore(Protocol):
    def create_with_items(self, draft: OrderDraft) -> str:
        """Persist the order, its items and their stock reservations atomically.

        Returns the new order id. Raises BusinessRuleError when a reservation
        no longer fits the recorded stock and StorageError on any storage
        fault; in both cases nothing is written.
        """
        ...

    def get_by_id(self, order_id: str) -> Optional[Order]:
        ...

    def get_by_buyer(self, buyer_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        ...

    def get_by_seller(self, seller_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        ...

    def update_status(self, order_id: str, status: str, expected_status: Optional[str] = None) -> bool:
        """Blind single-column update; with ``expected_status`` a compare-and-set."""
        ...

    def set_tracking_number(self, order_id: str, tracking_number: str) -> bool:
        ...
