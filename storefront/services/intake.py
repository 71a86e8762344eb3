"""Order placement.

Turns a submitted cart into a committed order. Prices are always re-read
from the catalog; whatever the client believes an item costs is never
consulted.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

import structlog

from storefront.core.errors import BusinessRuleError, NotFoundError, StorageError, ValidationError
from storefront.domain import CartLine, LineItemDraft, Order, OrderDraft, OrderStatus, ShippingAddress
from storefront.store.base import OrderStore, ProductCatalog

logger = structlog.get_logger(__name__)


class OrderIntake:
    def __init__(self, catalog: ProductCatalog, store: OrderStore, events=None):
        self._catalog = catalog
        self._store = store
        self._events = events

    def place_order(
        self,
        buyer_id: str,
        items: Sequence[CartLine],
        shipping_address: Optional[ShippingAddress] = None,
        payment_method: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        if not items:
            raise ValidationError('Order must have at least one item')
        for line in items:
            if line.quantity < 1:
                raise ValidationError(f'Quantity for product {line.product_id} must be at least 1')

        total = Decimal('0')
        drafts = []
        for line in items:
            product = self._catalog.get(line.product_id)
            if product is None:
                raise NotFoundError(f'Product not found: {line.product_id}')
            if not product.is_active:
                raise BusinessRuleError(f'Product is not available: {product.name}')
            if product.stock_quantity < line.quantity:
                raise BusinessRuleError(f'Insufficient stock for: {product.name}')

            drafts.append(LineItemDraft(
                product_id=product.id,
                quantity=line.quantity,
                price_at_time=product.price,
                color=line.color,
                size=line.size,
            ))
            total += product.price * line.quantity

        draft = OrderDraft(
            buyer_id=buyer_id,
            total=total,
            items=drafts,
            status=OrderStatus.PENDING.value,
            shipping_address=shipping_address,
            payment_method=payment_method,
            notes=notes,
        )
        try:
            order_id = self._store.create_with_items(draft)
        except BusinessRuleError as exc:
            logger.info('order_rejected', buyer_id=buyer_id, reason=exc.message)
            raise

        order = self._store.get_by_id(order_id)
        if order is None:
            raise StorageError(f'Order {order_id} was committed but could not be read back')
        logger.info('order_placed', order_id=order.id, order_number=order.order_number,
                    buyer_id=buyer_id, total=str(order.total), items=len(order.items))

        if self._events is not None:
            self._events.emit({
                'type': 'order.created',
                'order_id': order.id,
                'order_number': order.order_number,
                'buyer_id': buyer_id,
                'total': str(order.total),
                'items': [
                    {'product_id': it.product_id, 'quantity': it.quantity, 'price_at_time': str(it.price_at_time)}
                    for it in order.items
                ],
            })
        return order
