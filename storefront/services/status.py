"""Status transitions and fulfillment metadata.

The store's ``update_status`` writes whatever it is given. Everything that
changes an order after placement goes through ``OrderWorkflow`` instead,
which only allows::

    pending -> confirmed -> shipped -> delivered
    pending | confirmed -> cancelled
"""
from __future__ import annotations

from typing import Optional

import structlog

from storefront.core.errors import BusinessRuleError, NotFoundError, PermissionDeniedError, ValidationError
from storefront.domain import ALLOWED_TRANSITIONS, Identity, Order, OrderStatus
from storefront.store.base import OrderStore

logger = structlog.get_logger(__name__)

TRACKABLE = {OrderStatus.CONFIRMED, OrderStatus.SHIPPED}


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise BusinessRuleError(f'Invalid order status: {value!r}') from None


def check_transition(current: str, target: OrderStatus, order_id: str) -> None:
    if target not in ALLOWED_TRANSITIONS.get(parse_status(current), set()):
        raise BusinessRuleError(
            f'Order {order_id} cannot move from {current} to {target.value}'
        )


class OrderWorkflow:
    def __init__(self, store: OrderStore, events=None):
        self._store = store
        self._events = events

    def _load(self, order_id: str, identity: Identity) -> Order:
        order = self._store.get_by_id(order_id)
        if order is None or not identity.can_see(order):
            raise NotFoundError(f'Order not found: {order_id}')
        return order

    def _require_fulfiller(self, order: Order, identity: Identity) -> None:
        if identity.is_admin or (identity.is_seller and order.sold_by(identity.subject)):
            return
        raise PermissionDeniedError(f'Not allowed to update order {order.id}')

    def _transition(self, order: Order, target: OrderStatus, identity: Identity) -> Order:
        check_transition(order.status, target, order.id)
        if not self._store.update_status(order.id, target.value, expected_status=order.status):
            raise BusinessRuleError(f'Order {order.id} was modified concurrently, retry with fresh data')
        logger.info('order_status_changed', order_id=order.id, previous=order.status,
                    status=target.value, by=identity.subject)
        if self._events is not None:
            self._events.emit({
                'type': 'order.status_changed',
                'order_id': order.id,
                'previous': order.status,
                'status': target.value,
            })
        return self._reload(order.id)

    def _reload(self, order_id: str) -> Order:
        order = self._store.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f'Order not found: {order_id}')
        return order

    def change_status(self, order_id: str, status: str, identity: Identity) -> Order:
        target = parse_status(status)
        order = self._load(order_id, identity)
        self._require_fulfiller(order, identity)
        return self._transition(order, target, identity)

    def cancel(self, order_id: str, identity: Identity) -> Order:
        """Buyer-initiated cancellation. Stock is not returned to the catalog."""
        order = self._load(order_id, identity)
        if order.buyer_id != identity.subject:
            self._require_fulfiller(order, identity)
        return self._transition(order, OrderStatus.CANCELLED, identity)

    def set_tracking_number(self, order_id: str, tracking_number: Optional[str], identity: Identity) -> Order:
        tracking_number = (tracking_number or '').strip()
        if not tracking_number:
            raise ValidationError('Tracking number must not be empty')
        order = self._load(order_id, identity)
        self._require_fulfiller(order, identity)
        if parse_status(order.status) not in TRACKABLE:
            raise BusinessRuleError(
                f'Order {order_id} is {order.status}; tracking can only be set on confirmed or shipped orders'
            )
        if not self._store.set_tracking_number(order_id, tracking_number):
            raise NotFoundError(f'Order not found: {order_id}')
        logger.info('order_tracking_set', order_id=order_id, tracking_number=tracking_number)
        return self._reload(order_id)
