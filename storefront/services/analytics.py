from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from storefront.domain import to_money
from storefront.store.base import OrderStore


@dataclass
class SellerSummary:
    total_orders: int
    total_revenue: Decimal
    average_order_value: Decimal
    # need product-count and view-tracking sources; always zero for now
    total_products: int = 0
    total_views: int = 0
    conversion_rate: float = 0.0


class SellerAnalytics:
    def __init__(self, store: OrderStore, page_size: int = 1000):
        self._store = store
        self._page_size = page_size

    def summarize(self, seller_id: str) -> SellerSummary:
        orders, _ = self._store.get_by_seller(seller_id, self._page_size, 0)
        revenue = sum((o.total for o in orders), Decimal('0'))
        count = len(orders)
        average = to_money(revenue / count) if count else Decimal('0')
        return SellerSummary(
            total_orders=count,
            total_revenue=to_money(revenue),
            average_order_value=average,
        )
